from pathlib import Path


class HeaderScanError(Exception):
    """Base user-facing error."""


class ConfigError(HeaderScanError):
    """Configuration cannot be loaded; fatal before any file is touched."""


class ConfigFileError(ConfigError):
    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")


class MatchError(ConfigError):
    """A glob in the configuration cannot be compiled."""


class RenderError(HeaderScanError):
    """A header cannot be rendered for one particular file."""


class MissingPropertyError(RenderError):
    def __init__(self, name: str | None, detail: str) -> None:
        self.name = name
        self.detail = detail
        super().__init__(f"missing property {name!r}" if name else f"missing property ({detail})")


class UnsupportedLanguageError(RenderError):
    def __init__(self, language: str | None) -> None:
        self.language = language
        super().__init__(f"unsupported language {language!r}" if language else "unsupported language")
