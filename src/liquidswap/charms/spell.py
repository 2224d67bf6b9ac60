"""Spell templating and local validation.

A spell is a YAML document describing a state transition (swap, mint,
transfer) for the Charms prover. Templates carry ``${name}`` placeholders
that are filled from a variable mapping before submission.

Validation here is advisory: it rejects obviously broken documents before
an expensive remote call, but the prover remains the authority on whether
a spell is correct.
"""

import logging
import re
from typing import Any, Mapping

import yaml

from liquidswap.charms.errors import (
    InvalidSpellStructureError,
    MalformedSpellError,
    MissingFieldError,
    UnresolvedPlaceholderError,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\$\{([^${}\s]+)\}")

REQUIRED_FIELDS = ("version",)


def render_spell(template: str, variables: Mapping[str, str]) -> str:
    """Substitute ``${name}`` tokens in a spell template.

    Every literal occurrence of ``${name}`` is replaced with the bound
    value. All tokens are matched in a single pass over the template, so
    substituted values are never re-scanned and the result does not depend
    on the iteration order of ``variables``. Tokens without a binding are
    left verbatim.

    Args:
        template: Spell template text
        variables: Placeholder name -> substitution value

    Returns:
        Rendered spell text
    """
    if not variables:
        return template

    tokens = {f"${{{name}}}": str(value) for name, value in variables.items()}
    # Longest first so that a token is never shadowed by one of its prefixes
    pattern = re.compile(
        "|".join(re.escape(token) for token in sorted(tokens, key=len, reverse=True))
    )
    return pattern.sub(lambda match: tokens[match.group(0)], template)


def find_placeholders(text: str) -> list[str]:
    """List distinct ``${name}`` tokens in text, in order of first appearance."""
    names: list[str] = []
    for match in PLACEHOLDER_PATTERN.finditer(text):
        name = match.group(1)
        if name not in names:
            names.append(name)
    return names


def parse_spell(spell: str) -> dict[str, Any]:
    """Parse spell text into a mapping.

    Raises:
        MalformedSpellError: If the text is not YAML or not a mapping
    """
    try:
        document = yaml.safe_load(spell)
    except yaml.YAMLError as e:
        raise MalformedSpellError(f"Spell is not valid YAML: {e}") from e

    if not isinstance(document, dict):
        kind = type(document).__name__ if document is not None else "empty document"
        raise MalformedSpellError(f"Spell must be a mapping, got {kind}")

    return document


def validate_spell(spell: str) -> None:
    """Validate a rendered spell before sending it to the prover.

    Checks, in order:
    1. The text parses as a YAML mapping.
    2. Required top-level fields (``version``) are present.
    3. No ``${...}`` placeholders are left unresolved.
    4. ``apps``/``ins``/``outs`` are shaped consistently and every charm
       alias used by an input or output is declared in ``apps``.

    Raises:
        SpellValidationError: Subclass describing the first failed check
    """
    document = parse_spell(spell)

    for field in REQUIRED_FIELDS:
        if field not in document:
            raise MissingFieldError(field)

    unresolved = find_placeholders(spell)
    if unresolved:
        raise UnresolvedPlaceholderError(unresolved)

    _check_structure(document)
    logger.debug(f"Spell validated (version {document['version']})")


def _check_structure(document: dict[str, Any]) -> None:
    apps = document.get("apps")
    if apps is None:
        apps = {}
    elif not isinstance(apps, dict):
        raise InvalidSpellStructureError("'apps' must be a mapping of alias -> app spec")

    for section in ("ins", "outs"):
        entries = document.get(section)
        if entries is None:
            continue
        if not isinstance(entries, list):
            raise InvalidSpellStructureError(f"'{section}' must be a list")

        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise InvalidSpellStructureError(f"{section}[{index}] must be a mapping")

            charms = entry.get("charms")
            if charms is None:
                continue
            if not isinstance(charms, dict):
                raise InvalidSpellStructureError(f"{section}[{index}].charms must be a mapping")

            for alias in charms:
                if isinstance(alias, str) and alias.startswith("$") and alias not in apps:
                    raise InvalidSpellStructureError(
                        f"{section}[{index}] references undeclared app '{alias}'"
                    )
