from pathlib import Path
import sys

from headerscan.config import load_config
from headerscan.errors import ConfigError
from headerscan.messages import error, info, success
from headerscan.rendering import substitute


def check_config(root: str = '.', config_path: str | None = None) -> int:
    try:
        config = load_config(Path(root), Path(config_path) if config_path else None)
    except ConfigError as e:
        error(f"Configuration error: {e}", stream=sys.stderr)
        return 2

    info(f"Configuration: {config.path}",
         f"Rules: {', '.join(str(rule) for rule in config.rules)}",
         f"Properties: {', '.join(f'{k}={v}' for k, v in config.properties.items()) or '(none)'}")
    if config.mapping:
        info(f"Extra mappings: {', '.join(f'{k}={v.name}' for k, v in config.mapping.items())}")
    info("Header:", *substitute(config.template, config.properties).split('\n'))
    success("Config is valid")
    return 0
