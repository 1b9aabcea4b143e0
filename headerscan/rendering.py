"""
Header rendering: placeholder substitution followed by comment wrapping.

Templates are Jinja templates rendered with ``StrictUndefined``. Besides the usual
``{{ copyrightOwner }}`` / ``{{ props["copyrightOwner"] }}`` forms, the short
``{copyrightOwner}`` form is accepted and rewritten to ``{{ copyrightOwner }}``
before compilation. Defaults are expressed with the ``default`` filter.
"""
from __future__ import annotations
from typing import Dict, Mapping
from functools import lru_cache
import re

import jinja2

from headerscan.errors import MissingPropertyError, UnsupportedLanguageError
from headerscan.styles import CommentStyle, style_for

SHORT_PLACEHOLDER = re.compile(r'(?<!\{)\{([A-Za-z_][A-Za-z0-9_]*)\}(?!\})')
UNDEFINED_NAME = re.compile(r"has no (?:attribute|element) '?([^'\s]+)'?|'([^']+)' is undefined")

_ENV = jinja2.Environment(
    undefined=jinja2.StrictUndefined,
    keep_trailing_newline=False,
    autoescape=False,
)


@lru_cache(maxsize=32)
def _compile(template: str) -> jinja2.Template:
    return _ENV.from_string(SHORT_PLACEHOLDER.sub(r'{{ \1 }}', template))


def _missing_name(e: jinja2.UndefinedError) -> str | None:
    match = UNDEFINED_NAME.search(str(e))
    if not match:
        return None
    return match.group(1) or match.group(2)


def substitute(template: str, properties: Mapping[str, str]) -> str:
    """
    Replaces every placeholder of ``template`` with its property value.

    Raises MissingPropertyError if a placeholder has neither a value nor a default.
    The result has line endings normalized to ``\\n`` and no trailing blank lines.
    """
    props: Dict[str, str] = dict(properties)
    try:
        compiled = _compile(template)
        text = compiled.render({**props, "props": props})
    except jinja2.UndefinedError as e:
        raise MissingPropertyError(_missing_name(e), str(e)) from e
    except jinja2.TemplateSyntaxError as e:
        raise MissingPropertyError(None, f"template syntax error: {e.message}") from e
    text = text.replace('\r\n', '\n').replace('\r', '\n')
    return text.strip('\n')


def wrap(text: str, style: CommentStyle) -> str:
    return '\n'.join(style.wrap(text)) + '\n'


def render(template: str, properties: Mapping[str, str], language: str | None,
           mapping: Mapping[str, CommentStyle] | None = None) -> str:
    """
    Renders the header for a file of ``language`` (a key from ``styles.language_of``).
    """
    style = style_for(language, mapping)
    if style is None:
        raise UnsupportedLanguageError(language)
    return wrap(substitute(template, properties), style)
