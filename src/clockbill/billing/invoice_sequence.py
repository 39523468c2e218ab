"""Persisted invoice number sequence.

The counter file holds the next number to hand out. Each allocation reads it,
writes the incremented value and returns the value read, all under an
exclusive file lock so concurrent callers (threads or processes) never
observe the same number. The write is atomic: when it fails, no number is
returned and the stored value is unchanged. Numbers handed out for invoices
that are never created are burned, never reused.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from ..core.errors import CounterPersistenceError
from ..observability import get_logger
from ..storage.files import FileLock, FileLockTimeout, atomic_write

__all__ = [
    "DEFAULT_COUNTER_PATH",
    "InvoiceSequence",
    "InvoiceSequenceConfig",
]

DEFAULT_COUNTER_PATH = Path(".clockbill") / "invoice-counter.yaml"

_COUNTER_KEY = "next_invoice"

log = get_logger("billing")


@dataclass
class InvoiceSequenceConfig:
    """Configuration for the invoice sequence."""

    counter_path: Path = DEFAULT_COUNTER_PATH
    start: int = 1
    lock_timeout: float = 10.0


class InvoiceSequence:
    """Monotonic invoice numbers backed by a YAML counter file.

    Example:
        >>> sequence = InvoiceSequence(InvoiceSequenceConfig(counter_path=Path("counter.yaml"), start=100))
        >>> sequence.next_invoice()
        100
        >>> sequence.next_invoice()
        101
        >>> sequence.peek()
        102
    """

    def __init__(self, config: InvoiceSequenceConfig | None = None) -> None:
        self.config = config or InvoiceSequenceConfig()
        self.counter_path = Path(self.config.counter_path)

        if self.config.start < 0:
            raise ValueError(f"Invoice numbers start at 0 or above, got {self.config.start}")

    def _read(self) -> int:
        try:
            text = self.counter_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return self.config.start
        except OSError as exc:
            raise CounterPersistenceError(f"Cannot read invoice counter {self.counter_path}: {exc}") from exc

        try:
            data = yaml.safe_load(text) or {}
            value = data[_COUNTER_KEY]
        except (yaml.YAMLError, KeyError, TypeError) as exc:
            raise CounterPersistenceError(f"Invoice counter {self.counter_path} is corrupt") from exc

        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise CounterPersistenceError(f"Invoice counter {self.counter_path} holds {value!r}, not a number")
        return value

    def _write(self, value: int) -> None:
        content = yaml.safe_dump({_COUNTER_KEY: value}, sort_keys=False)
        try:
            atomic_write(self.counter_path, content)
        except OSError as exc:
            raise CounterPersistenceError(
                f"Failed to persist invoice counter {self.counter_path}: {exc}"
            ) from exc

    def _lock(self) -> FileLock:
        return FileLock(self.counter_path, timeout=self.config.lock_timeout)

    def next_invoice(self) -> int:
        """Allocate the next invoice number.

        Returns
        -------
        int
            The number before the increment

        Raises
        ------
        CounterPersistenceError
            If the counter cannot be locked, read or durably advanced
        """
        try:
            with self._lock():
                current = self._read()
                self._write(current + 1)
        except FileLockTimeout as exc:
            raise CounterPersistenceError(str(exc)) from exc
        except CounterPersistenceError:
            log.error("Invoice number not allocated", counter=str(self.counter_path))
            raise

        log.info("Allocated invoice number", invoice=current, counter=str(self.counter_path))
        return current

    def peek(self) -> int:
        """Return the number the next allocation would hand out."""
        try:
            with self._lock():
                return self._read()
        except FileLockTimeout as exc:
            raise CounterPersistenceError(str(exc)) from exc
