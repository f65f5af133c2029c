"""
Parameterized spells.

A spell can declare one placeholder (``$pubkey``, ``$event`` or ``$relay``)
through its ``l`` tag, optionally with default values. Applying the spell to
a target (a profile, an event, a relay) substitutes the placeholder in the
filter. ``$me`` and ``$contacts`` are substituted from the same context
whenever a target pubkey or contact list is given.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from reqspell.core.exceptions import ParameterError
from reqspell.models.constants import SpellParameterType

from .resolver import AccountContext, substitute_aliases


if TYPE_CHECKING:
    from reqspell.models.filter import Filter


@dataclass(frozen=True, slots=True)
class SpellParameter:
    """The placeholder a spell is parameterized over.

    Attributes:
        type: Placeholder kind; also the literal substituted in the filter.
        defaults: Values used when no target is supplied.
    """

    type: SpellParameterType
    defaults: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", SpellParameterType(self.type))
        object.__setattr__(self, "defaults", tuple(self.defaults))

    def to_tag(self) -> list[str]:
        """Return the ``["l", <type>, *defaults]`` spell tag."""
        return ["l", self.type.value, *self.defaults]


@dataclass(frozen=True, slots=True)
class ParameterContext:
    """Values a parameterized spell is applied to.

    Attributes:
        target_pubkey: Replaces ``$pubkey`` and ``$me``.
        target_contacts: Replaces ``$contacts``.
        target_event_id: Replaces ``$event``.
        target_address: Coordinate of the target when it is addressable;
            ``$event`` in ``#e`` then moves to ``#a`` as this coordinate.
        target_relay: Replaces ``$relay``.
    """

    target_pubkey: str | None = None
    target_contacts: tuple[str, ...] = ()
    target_event_id: str | None = None
    target_address: str | None = None
    target_relay: str | None = None


def _substitute(values: tuple[str, ...], placeholder: str, replacement: list[str]) -> list[str]:
    result: list[str] = []
    for value in values:
        if value == placeholder:
            result.extend(replacement)
        else:
            result.append(value)
    return result


def _replacement(target: str | None, parameter: SpellParameter) -> list[str]:
    values = [target] if target else list(parameter.defaults)
    if not values:
        raise ParameterError(f"Parameterized {parameter.type} spell requires a target value")
    return values


def apply_spell_parameters(
    filter_: Filter,
    parameter: SpellParameter | None,
    context: ParameterContext | None = None,
) -> Filter:
    """Return *filter_* with the spell's placeholder substituted.

    Args:
        filter_: The decoded spell filter.
        parameter: The spell's declared parameter, if any.
        context: Target values.

    Returns:
        A new filter. Tag filters left empty by the substitution are removed.

    Raises:
        ParameterError: If the spell is parameterized and neither a target
            nor a default value is available.
    """
    context = context or ParameterContext()

    if parameter is not None:
        placeholder = parameter.type.value
        if parameter.type == SpellParameterType.PUBKEY:
            values = _replacement(context.target_pubkey, parameter)
            filter_ = filter_.with_values(
                "authors", _substitute(filter_.authors, placeholder, values)
            )
            for letter, tag_values in filter_.tags.items():
                filter_ = filter_.with_values(
                    f"#{letter}", _substitute(tag_values, placeholder, values)
                )

        elif parameter.type == SpellParameterType.EVENT:
            values = _replacement(context.target_event_id, parameter)
            address = [context.target_address] if context.target_address else []
            filter_ = filter_.with_values("ids", _substitute(filter_.ids, placeholder, values))
            for letter in tuple(filter_.tags):
                tag_values = filter_.tag(letter)
                if placeholder not in tag_values:
                    continue
                if letter == "e" and address:
                    filter_ = filter_.with_values("#e", _substitute(tag_values, placeholder, []))
                    filter_ = filter_.merged("#a", address)
                elif letter == "a" and address:
                    filter_ = filter_.with_values(
                        "#a", _substitute(tag_values, placeholder, address)
                    )
                else:
                    filter_ = filter_.with_values(
                        f"#{letter}", _substitute(tag_values, placeholder, values)
                    )

        else:
            values = _replacement(context.target_relay, parameter)
            for letter, tag_values in filter_.tags.items():
                filter_ = filter_.with_values(
                    f"#{letter}", _substitute(tag_values, placeholder, values)
                )

    if context.target_pubkey or context.target_contacts:
        account = AccountContext(context.target_pubkey, tuple(context.target_contacts))
        filter_ = substitute_aliases(filter_, account)
    return filter_
