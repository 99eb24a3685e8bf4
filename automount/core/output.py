"""Structured output for CLI commands."""

import json
from typing import Any


class Output:
    """Collects command results and renders them as plain text or JSON."""

    def __init__(self):
        self.data: dict[str, Any] = {}
        self.warnings: list[str] = []
        self._summary: str | None = None
        self._printed: bool = False

    def emit(self, data: dict[str, Any]) -> None:
        """Store structured output data."""
        self.data.update(data)

    def warning(self, message: str) -> None:
        """Record a warning message."""
        self.warnings.append(message)

    def set_summary(self, summary: str) -> None:
        """Set a one-line summary."""
        self._summary = summary

    @property
    def summary(self) -> str:
        """Get summary or generate from data."""
        if self._summary:
            return self._summary
        if self.warnings:
            return f"Warning: {self.warnings[0]}"
        return "ok"

    def to_json(self) -> str:
        """Return data as JSON string."""
        payload = dict(self.data)
        if self.warnings:
            payload["warnings"] = self.warnings
        payload["summary"] = self.summary
        return json.dumps(payload, indent=2, default=str)

    def render(self, format: str = "plain", title: str | None = None) -> None:
        """Print output in the specified format.

        Args:
            format: Output format - "json" or "plain"
            title: Optional title for plain text output
        """
        if self._printed:
            return
        self._printed = True

        if format == "json":
            print(self.to_json())
        else:
            print(self.to_plain(title))

    def to_plain(self, title: str | None = None) -> str:
        """Return data as formatted plain text."""
        lines = []

        if title:
            lines.append(title)
            lines.append("=" * len(title))
            lines.append("")

        status = self.data.get("status")
        if status:
            tag = "OK" if status in ("healthy", "ok") else "CRITICAL"
            lines.append(f"[{tag}] Status: {status.upper()}")
            lines.append("")

        for key, value in self.data.items():
            if key == "status":
                continue
            self._render_value(lines, key, value)

        for warning in self.warnings:
            lines.append(f"[WARNING] {warning}")

        if self._summary:
            if lines and lines[-1]:
                lines.append("")
            lines.append(self._summary)

        return "\n".join(lines)

    def _render_value(self, lines: list, key: str, value: Any, indent: int = 0) -> None:
        """Render one key, numbering lists of records."""
        prefix = "  " * indent
        display_key = str(key).replace("_", " ").title()

        if isinstance(value, list) and value and all(isinstance(v, dict) for v in value):
            for i, item in enumerate(value, start=1):
                label = item.get("name", i)
                lines.append(f"{prefix}  {i}. {label}")
                for k, v in item.items():
                    if k == "name":
                        continue
                    self._render_value(lines, k, v, indent + 2)
                lines.append("")
        elif isinstance(value, list):
            if not value:
                lines.append(f"{prefix}{display_key}: (none)")
            else:
                lines.append(f"{prefix}{display_key}: {', '.join(str(v) for v in value)}")
        else:
            lines.append(f"{prefix}{display_key}: {value}")
