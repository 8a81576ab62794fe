"""Shell variable storage."""

from __future__ import annotations

from collections.abc import Iterator


class ShellMemory:
    """Named string variables, kept in the order they were first set."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def set(self, name: str, value: str) -> None:
        """Create ``name`` or overwrite its value."""
        self._values[name] = value

    def get(self, name: str) -> str | None:
        """Return the value of ``name``, or None if it was never set."""
        return self._values.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def items(self) -> Iterator[tuple[str, str]]:
        """Yield ``(name, value)`` pairs in creation order."""
        yield from self._values.items()