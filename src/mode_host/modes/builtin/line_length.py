"""Line length warnings driven by cursor column and document edits."""

from __future__ import annotations

from typing import List, Optional

from mode_host.host.events import DOCUMENT_CHANGED, DocumentChange, Subscription

from ..base_mode import Mode, ModeEnvironment

DEFAULT_LIMIT = 80


class LineLengthMode(Mode):
    """Flags the cursor once it passes ``limit`` and counts long lines.

    Severity levels follow the column: ``ok`` up to 90% of the limit,
    ``near`` until the limit, ``over`` past it and ``far`` once the column
    exceeds ``limit + 20``.
    """

    id = "linelength"
    name = "Line Length"
    description = "Warns when lines grow past the configured length"

    def __init__(self, limit: int = DEFAULT_LIMIT) -> None:
        super().__init__()
        self.limit = limit
        self.long_lines: List[int] = []
        self.severity = "ok"
        self._subscription: Optional[Subscription] = None

    def activate(self, env: ModeEnvironment) -> None:
        super().activate(env)
        self.limit = int(env.load_state("limit", self.limit))
        env.register_command(
            "linelength.configure", self.configure, title="Configure line length"
        )
        self._subscription = env.events.subscribe(DOCUMENT_CHANGED, self._on_document)

    def deactivate(self) -> None:
        if self._subscription is not None:
            self._subscription.dispose()
            self._subscription = None
        self.long_lines = []
        super().deactivate()

    def configure(self, limit: int) -> int:
        if limit <= 0:
            raise ValueError("limit must be positive")
        self.limit = limit
        if self.env is not None:
            self.env.save_state("limit", limit)
        return limit

    def classify(self, column: int) -> str:
        if column > self.limit + 20:
            return "far"
        if column > self.limit:
            return "over"
        if column >= int(self.limit * 0.9):
            return "near"
        return "ok"

    def update(self, line: int, column: int) -> None:
        if self.env is None:
            return
        self.severity = self.classify(column)
        text = f"Col {column + 1}/{self.limit}"
        if self.severity != "ok":
            text = f"{text} [{self.severity}]"
        if self.long_lines:
            text = f"{text} ({len(self.long_lines)} long)"
        self.env.status.set_text(text)

    def _on_document(self, payload: object) -> None:
        if not isinstance(payload, DocumentChange):
            return
        self.long_lines = [
            index for index, text in enumerate(payload.lines) if len(text) > self.limit
        ]
