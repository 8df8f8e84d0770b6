"""
Transcript

Append-only log of the turns exchanged with the oracle. Entries are never
reordered or removed; the only way to shorten a transcript is clear() on a
full session reset.
"""

from typing import Dict, Iterable, List, Optional

from adaptive_interview_coach.session_state import Role, TranscriptEntry


class Transcript:
    """Ordered USER / ORACLE turns for one session."""

    def __init__(self, max_payload_turns: Optional[int] = None):
        """
        Args:
            max_payload_turns: Optional cap on how many turns are sent to the
                oracle. The opening exchange is always kept so the oracle
                still knows the starting level. None sends everything.
        """
        self._entries: List[TranscriptEntry] = []
        self.max_payload_turns = max_payload_turns

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    @property
    def entries(self) -> tuple:
        return tuple(self._entries)

    def append(self, entry: TranscriptEntry) -> None:
        self._entries.append(entry)

    def extend(self, entries: Iterable[TranscriptEntry]) -> None:
        """Append several entries at once (used for the commit point)."""
        self._entries.extend(entries)

    def clear(self) -> None:
        self._entries = []

    def latest_oracle_reply(self) -> str:
        """Most recent real (non-synthetic) oracle turn, or ''."""
        for entry in reversed(self._entries):
            if entry.role is Role.ORACLE and not entry.synthetic:
                return entry.content
        return ""

    def to_messages(self, pending: Optional[TranscriptEntry] = None) -> List[Dict[str, str]]:
        """
        Build the oracle payload.

        Synthetic failure notices, and the user turn each one answers, stay
        in the transcript but are left out here so the payload alternates
        user/assistant.
        """
        kept: List[TranscriptEntry] = []
        for entry in self._entries:
            if entry.synthetic:
                if kept and kept[-1].role is Role.USER:
                    kept.pop()
                continue
            kept.append(entry)

        if self.max_payload_turns is not None and len(kept) > self.max_payload_turns:
            opening = kept[:2]
            # Keep an even tail so the window still starts on a user turn
            tail_size = max(self.max_payload_turns - len(opening), 0)
            tail_size -= tail_size % 2
            tail = kept[len(kept) - tail_size:] if tail_size else []
            kept = opening + tail

        if pending is not None:
            kept = kept + [pending]

        return [{"role": e.role.value, "content": e.content} for e in kept]
