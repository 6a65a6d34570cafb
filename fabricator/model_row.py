from __future__ import annotations


class Row:
    """Mutable attribute-name -> string record. Setting a value never validates it."""

    def __init__(self, values: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(values or {})

    def __repr__(self) -> str:
        return f"Row({self.values!r})"

    def get_value(self, name: str) -> str:
        return self.values.get(name, "")

    def set_value(self, name: str, value: str) -> None:
        self.values[name] = value
