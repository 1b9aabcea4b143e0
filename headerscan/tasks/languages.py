from headerscan.styles import STYLE_BY_EXTENSION, STYLE_BY_FILENAME


def list_languages() -> None:
    for key, style in sorted(STYLE_BY_FILENAME.items()):
        print(f"{key}\t{style.name}")
    for key, style in sorted(STYLE_BY_EXTENSION.items()):
        print(f"*{key}\t{style.name}")
