from pathlib import Path
from typing import Callable, Dict
import pytest

SCENARIO_CONFIG = '''
inlineHeader = "Copyright {inceptionYear} {copyrightOwner}"
excludes = ["**/*.toml", "!**/Cargo.toml"]

[properties]
copyrightOwner = "Acme"
inceptionYear = 2022
'''


@pytest.fixture
def tree(tmp_path: Path) -> Callable[[Dict[str, str | bytes]], Path]:
    """
    Writes the given files below a temporary root (bytes are written verbatim,
    strings as UTF-8 without newline translation) and returns the root.
    """
    def make(files: Dict[str, str | bytes]) -> Path:
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content if isinstance(content, bytes) else content.encode('utf-8'))
        return tmp_path
    return make


@pytest.fixture
def scenario(tree) -> Path:
    return tree({
        "licenserc.toml": SCENARIO_CONFIG,
        "Cargo.toml": "[package]\nname = \"demo\"\n",
        "settings.toml": "debug = true\n",
    })
