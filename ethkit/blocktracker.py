"""Tracking of the chain head, with reorg detection and backfilling."""

from __future__ import annotations

import enum
import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from .primitives import Block, Hash

LATEST = "latest"
DEFAULT_MAX_BLOCK_BACKLOG = 10
DEFAULT_POLL_INTERVAL = 1.0


class BlockProvider(Protocol):
    """The node methods the block tracker relies on."""

    def get_block_by_hash(self, block_hash: Hash, full: bool) -> Block:
        ...

    def get_block_by_number(self, number, full: bool) -> Block:
        ...


class EventType(enum.IntEnum):
    """What happened to the blocks of an event."""

    ADD = 0
    DEL = 1


@dataclass
class BlockEvent:
    """Blocks added to and removed from the tracked chain."""

    type: EventType = EventType.ADD
    added: list[Block] = field(default_factory=list)
    removed: list[Block] = field(default_factory=list)


class BlockTrackerError(Exception):
    """Raised when the tracked chain cannot be reconciled."""


class JSONBlockTracker:
    """Finds new heads by polling the provider for the latest block."""

    def __init__(
        self,
        provider: BlockProvider,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.provider = provider
        self.poll_interval = poll_interval
        self.logger = logger or logging.getLogger(__name__)

    def track(
        self, stop_event: threading.Event, handle: Callable[[Block], object]
    ) -> threading.Thread:
        """Poll in a background thread and pass each new head to ``handle``."""
        thread = threading.Thread(
            target=self._poll, args=(stop_event, handle), daemon=True
        )
        thread.start()
        return thread

    def _poll(self, stop_event: threading.Event, handle) -> None:
        last_block: Optional[Block] = None
        while not stop_event.wait(self.poll_interval):
            try:
                block = self.provider.get_block_by_number(LATEST, False)
            except Exception as exc:
                self.logger.error("tracker failed to get last block: %s", exc)
                continue
            if last_block is not None and last_block.hash == block.hash:
                continue
            try:
                handle(block)
            except Exception as exc:
                self.logger.error("blocktracker: failed to handle block: %s", exc)
            else:
                last_block = block


class BlockTracker:
    """Keeps a window of recent blocks and reports chain changes."""

    def __init__(
        self,
        provider: BlockProvider,
        max_block_backlog: int = DEFAULT_MAX_BLOCK_BACKLOG,
        tracker=None,
    ) -> None:
        self.provider = provider
        self.max_block_backlog = max_block_backlog
        self.tracker = tracker if tracker is not None else JSONBlockTracker(provider)
        self._blocks: list[Block] = []
        self._lock = threading.RLock()
        self._subscribers: list[queue.Queue] = []
        self._subscribers_lock = threading.Lock()
        self._init_lock = threading.Lock()
        self._initialized = False
        self._closed = threading.Event()

    def subscribe(self) -> queue.Queue:
        """Return a queue that receives block events; events are dropped if it is full."""
        channel: queue.Queue = queue.Queue(maxsize=1)
        with self._subscribers_lock:
            self._subscribers.append(channel)
        return channel

    def init(self) -> None:
        """Load the latest blocks, up to the backlog size. Runs only once."""
        with self._init_lock:
            if self._initialized:
                return
            self._initialized = True

            block = self.provider.get_block_by_number(LATEST, False)
            if block.number == 0:
                return
            collected: list[Block] = []
            for _ in range(self.max_block_backlog):
                collected.append(block)
                if block.number == 0:
                    break
                block = self.provider.get_block_by_hash(block.parent_hash, False)
            collected.reverse()
            with self._lock:
                self._blocks = collected

    def last_block(self) -> Optional[Block]:
        """Return a copy of the newest tracked block, or None."""
        with self._lock:
            return self._blocks[-1].copy() if self._blocks else None

    def blocks(self) -> list[Block]:
        """Return copies of the tracked blocks, oldest first."""
        with self._lock:
            return [block.copy() for block in self._blocks]

    def __len__(self) -> int:
        return len(self._blocks)

    def start(self):
        """Start following the chain with the configured tracker."""
        return self.tracker.track(self._closed, self.handle_reconcile)

    def close(self) -> None:
        """Stop following the chain."""
        self._closed.set()

    def add_block(self, block: Block) -> None:
        """Append ``block`` to the head, dropping the oldest past the backlog."""
        with self._lock:
            if len(self._blocks) == self.max_block_backlog:
                self._blocks = self._blocks[1:]
            if self._blocks:
                last_number = self._blocks[-1].number
                if last_number + 1 != block.number:
                    raise BlockTrackerError(
                        f"bad number sequence. {last_number} and {block.number}"
                    )
            self._blocks.append(block)

    def _index_of(self, block_hash: Hash) -> Optional[int]:
        for index, block in enumerate(self._blocks):
            if block.hash == block_hash:
                return index
        return None

    def _reconcile(self, block: Block) -> tuple[list[Block], Optional[int]]:
        if self._index_of(block.hash) is not None:
            return [], None
        if not self._blocks:
            return [block], None
        if self._blocks[-1].hash == block.parent_hash:
            return [block], None
        fork = self._index_of(block.parent_hash)
        if fork is not None:
            return [block], fork

        # the parent is unknown: walk back until a tracked block is found
        added = [block]
        count = 0
        while True:
            if count > self.max_block_backlog:
                raise BlockTrackerError("cannot reconcile more than max backlog values")
            count += 1
            try:
                parent = self.provider.get_block_by_hash(block.parent_hash, False)
            except Exception as exc:
                raise BlockTrackerError(
                    f"parent with hash {block.parent_hash} not found"
                ) from exc
            if parent is None:
                raise BlockTrackerError(f"parent with hash {block.parent_hash} not found")
            added.append(parent)
            fork = self._index_of(parent.parent_hash)
            if fork is not None:
                break
            block = parent
        added.reverse()
        return added, fork

    def handle_block_event(self, block: Block) -> Optional[BlockEvent]:
        """Reconcile ``block`` with the tracked chain and return what changed."""
        with self._lock:
            new_blocks, fork = self._reconcile(block)
            if not new_blocks:
                return None

            event = BlockEvent()
            if fork is not None:
                event.removed = self._blocks[fork + 1:]
                self._blocks = self._blocks[: fork + 1]
            for new_block in new_blocks:
                event.added.append(new_block)
                self.add_block(new_block)
            return event

    def handle_reconcile(self, block: Block) -> Optional[BlockEvent]:
        """Reconcile ``block`` and notify subscribers of the resulting event."""
        event = self.handle_block_event(block)
        if event is None:
            return None
        with self._subscribers_lock:
            for channel in self._subscribers:
                try:
                    channel.put_nowait(event)
                except queue.Full:
                    pass
        return event