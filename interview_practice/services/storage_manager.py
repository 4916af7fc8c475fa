"""Storage Manager for handling practice session persistence and retrieval.

Each session is stored as one document holding the session, its response
records and its feedback. Multi-entity writes (an answer plus the cursor
advance, or the feedback plus the completed session) and cascading deletes
therefore land in a single write, and readers see either the whole graph or
none of it.
"""

import asyncio
import json
import re
import uuid
import weakref
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional

import aiofiles
import aiofiles.os
from filelock import FileLock, Timeout
from pydantic import Field, ValidationError

from ..models.base import BaseModel
from ..models.enums import SessionStatus
from ..models.session import Feedback, ResponseRecord, Session
from ..utils.exceptions import (
    ConcurrentModificationError,
    SessionAlreadyCompleteError,
    SessionNotFoundError,
    StorageError,
)
from ..utils.logging import get_logger

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class SessionGraph(BaseModel):
    """A session together with all of its child records."""

    session: Session
    responses: List[ResponseRecord] = Field(default_factory=list)
    feedback: Optional[Feedback] = None


class StorageInterface:
    """Abstract interface for storage operations.

    Subclasses provide the raw document primitives; the commit rules are
    shared so every backend enforces them the same way.
    """

    def __init__(self):
        self.logger = get_logger(f"storage.{type(self).__name__}")
        # Entries vanish once no coroutine holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def initialize(self) -> None:
        """Initialize the storage backend."""

    async def _read_graph(self, session_id: str) -> Optional[SessionGraph]:
        raise NotImplementedError

    async def _write_graph(self, graph: SessionGraph) -> None:
        raise NotImplementedError

    async def _remove_graph(self, session_id: str) -> bool:
        raise NotImplementedError

    async def _all_graphs(self) -> List[SessionGraph]:
        raise NotImplementedError

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def _process_lock(self, session_id: str) -> AsyncIterator[None]:
        """Exclude other processes sharing the backend; a no-op by default."""
        yield

    @asynccontextmanager
    async def _guard(self, session_id: str) -> AsyncIterator[None]:
        """Serialize read-check-write sequences on one session."""
        async with self._lock_for(session_id):
            async with self._process_lock(session_id):
                yield

    async def _require_graph(self, session_id: str) -> SessionGraph:
        graph = await self._read_graph(session_id)
        if graph is None:
            raise SessionNotFoundError(f"Session {session_id} not found", session_id=session_id)
        return graph

    async def create_session(self, session: Session) -> Session:
        """Persist a new session.

        Raises:
            StorageError: If a session with the same id already exists.
        """
        async with self._guard(session.id):
            if await self._read_graph(session.id) is not None:
                raise StorageError(f"Session {session.id} already exists", session_id=session.id)
            await self._write_graph(SessionGraph(session=session))
        self.logger.info(f"Session {session.id} created")
        return session

    async def load_session(self, session_id: str) -> Optional[Session]:
        """Load a session by ID, or ``None`` if it does not exist."""
        graph = await self._read_graph(session_id)
        return graph.session if graph else None

    async def list_sessions(self, owner_id: str) -> List[Session]:
        """List an owner's sessions, newest first."""
        sessions = [g.session for g in await self._all_graphs() if g.session.owner_id == owner_id]
        sessions.sort(key=lambda s: s.created_at, reverse=True)
        return sessions

    async def list_responses(self, session_id: str) -> List[ResponseRecord]:
        """List a session's response records ordered by question number."""
        graph = await self._read_graph(session_id)
        if graph is None:
            return []
        return sorted(graph.responses, key=lambda r: r.question_number)

    async def load_feedback(self, session_id: str) -> Optional[Feedback]:
        """Load a session's feedback, or ``None`` if absent or the session is gone."""
        graph = await self._read_graph(session_id)
        return graph.feedback if graph else None

    async def commit_response(self, record: ResponseRecord, session: Session, expected_index: int) -> Session:
        """Store a scored response and the advanced session in one write.

        ``session`` is the already-advanced copy; ``expected_index`` is the
        cursor the submission was based on and acts as a version token.

        Raises:
            SessionNotFoundError: If the session no longer exists.
            SessionAlreadyCompleteError: If the stored session is completed.
            ConcurrentModificationError: If the stored cursor moved or the
                question already has a record.
        """
        session_id = record.session_id
        async with self._guard(session_id):
            graph = await self._require_graph(session_id)
            stored = graph.session

            if stored.status == SessionStatus.COMPLETED:
                raise SessionAlreadyCompleteError(
                    f"Session {session_id} is already completed",
                    session_id=session_id, question_index=stored.current_question_index,
                )
            if stored.current_question_index != expected_index:
                raise ConcurrentModificationError(
                    f"Session {session_id} moved from question {expected_index} "
                    f"to {stored.current_question_index}",
                    session_id=session_id, expected_index=expected_index,
                    actual_index=stored.current_question_index,
                )
            if any(r.question_number == record.question_number for r in graph.responses):
                raise ConcurrentModificationError(
                    f"Question {record.question_number} of session {session_id} was already answered",
                    session_id=session_id, expected_index=expected_index,
                    actual_index=stored.current_question_index,
                )
            if record.question_number != expected_index or session.current_question_index != expected_index + 1:
                raise StorageError(
                    f"Inconsistent commit for session {session_id}: record {record.question_number}, "
                    f"expected {expected_index}, new index {session.current_question_index}",
                    session_id=session_id,
                )

            updated = SessionGraph(session=session, responses=[*graph.responses, record], feedback=graph.feedback)
            await self._write_graph(updated)

        self.logger.info(f"Response {record.question_number} committed for session {session_id}")
        return session

    async def commit_feedback(self, feedback: Feedback, session: Session) -> Feedback:
        """Store feedback and the completed session in one write.

        If feedback already exists, it is returned unchanged and nothing is
        written.

        Raises:
            SessionNotFoundError: If the session no longer exists.
            ConcurrentModificationError: If the stored cursor no longer matches.
        """
        session_id = feedback.session_id
        async with self._guard(session_id):
            graph = await self._require_graph(session_id)
            if graph.feedback is not None:
                self.logger.info(f"Feedback for session {session_id} already stored")
                return graph.feedback
            if graph.session.current_question_index != session.current_question_index:
                raise ConcurrentModificationError(
                    f"Session {session_id} changed while feedback was generated",
                    session_id=session_id, expected_index=session.current_question_index,
                    actual_index=graph.session.current_question_index,
                )

            await self._write_graph(SessionGraph(session=session, responses=graph.responses, feedback=feedback))

        self.logger.info(f"Feedback committed for session {session_id}")
        return feedback

    async def delete_session(self, session_id: str) -> bool:
        """Delete a session with its responses and feedback.

        Returns:
            True if the session existed.
        """
        async with self._guard(session_id):
            deleted = await self._remove_graph(session_id)

        if deleted:
            self.logger.info(f"Session {session_id} deleted")
        else:
            self.logger.warning(f"No session found to delete: {session_id}")
        return deleted


class InMemoryStorage(StorageInterface):
    """Process-local storage keeping serialized session documents."""

    def __init__(self):
        super().__init__()
        self._documents: Dict[str, str] = {}

    async def _read_graph(self, session_id: str) -> Optional[SessionGraph]:
        document = self._documents.get(session_id)
        return SessionGraph.model_validate_json(document) if document else None

    async def _write_graph(self, graph: SessionGraph) -> None:
        self._documents[graph.session.id] = graph.model_dump_json()

    async def _remove_graph(self, session_id: str) -> bool:
        return self._documents.pop(session_id, None) is not None

    async def _all_graphs(self) -> List[SessionGraph]:
        return [SessionGraph.model_validate_json(doc) for doc in list(self._documents.values())]


class FileStorageManager(StorageInterface):
    """File-based storage using one JSON document per session."""

    def __init__(self, base_path: str = "data", lock_timeout: float = 10.0):
        """Initialize the file storage manager.

        Args:
            base_path: Base directory for storing data files.
            lock_timeout: Seconds to wait for another process to release a session.
        """
        super().__init__()
        self.base_path = Path(base_path)
        self.sessions_path = self.base_path / "sessions"
        self.locks_path = self.base_path / "locks"
        self.lock_timeout = lock_timeout
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        """Ensure all required directories exist."""
        try:
            self.sessions_path.mkdir(parents=True, exist_ok=True)
            self.locks_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create storage directories: {e}", file_path=str(self.sessions_path))

    def initialize(self) -> None:
        """Verify the storage directory is writable."""
        test_file = self.base_path / ".test_write"
        try:
            test_file.write_text("test", encoding="utf-8")
            test_file.unlink()
        except OSError as e:
            self.logger.error(f"Failed to initialize FileStorageManager: {e}")
            raise StorageError(f"Storage permission verification failed: {e}", file_path=str(self.base_path))
        self.logger.info("FileStorageManager initialized successfully")

    def _session_file(self, session_id: str) -> Optional[Path]:
        if not session_id or not _SAFE_ID.match(session_id):
            return None
        return self.sessions_path / f"{session_id}.json"

    @asynccontextmanager
    async def _process_lock(self, session_id: str) -> AsyncIterator[None]:
        if self._session_file(session_id) is None:
            yield
            return

        # Acquired in a worker thread and released here, so the lock must not be thread-local
        lock = FileLock(str(self.locks_path / f"{session_id}.lock"), timeout=self.lock_timeout, thread_local=False)
        try:
            await asyncio.to_thread(lock.acquire)
        except Timeout:
            raise StorageError(f"Timed out waiting for session {session_id} to be released",
                               session_id=session_id, file_path=lock.lock_file)
        try:
            yield
        finally:
            lock.release()

    async def _read_file(self, path: Path) -> Optional[SessionGraph]:
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                content = await f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Session load failed: {e}", file_path=str(path))

        try:
            return SessionGraph.model_validate(json.loads(content))
        except (json.JSONDecodeError, ValidationError) as e:
            raise StorageError(f"Corrupt session document {path.name}: {e}", file_path=str(path))

    async def _read_graph(self, session_id: str) -> Optional[SessionGraph]:
        path = self._session_file(session_id)
        if path is None:
            return None
        return await self._read_file(path)

    async def _write_graph(self, graph: SessionGraph) -> None:
        path = self._session_file(graph.session.id)
        if path is None:
            raise StorageError(f"Invalid session id: {graph.session.id!r}", session_id=graph.session.id)

        tmp_path = path.with_name(f"{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(graph.model_dump_json(indent=2))
            # rename is atomic, so readers never see a half-written document
            await aiofiles.os.replace(tmp_path, path)
        except OSError as e:
            if await aiofiles.os.path.exists(tmp_path):
                await aiofiles.os.remove(tmp_path)
            self.logger.error(f"Failed to save session {graph.session.id}: {e}")
            raise StorageError(f"Session save failed: {e}", session_id=graph.session.id, file_path=str(path))

    async def _remove_graph(self, session_id: str) -> bool:
        path = self._session_file(session_id)
        if path is None:
            return False
        try:
            await aiofiles.os.remove(path)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Session deletion failed: {e}", session_id=session_id, file_path=str(path))

    async def _all_graphs(self) -> List[SessionGraph]:
        graphs = []
        for path in sorted(self.sessions_path.glob("*.json")):
            graph = await self._read_file(path)
            if graph is not None:
                graphs.append(graph)
        return graphs

    def get_storage_stats(self) -> Dict[str, object]:
        """Get storage statistics."""
        files = list(self.sessions_path.glob("*.json"))
        return {
            "sessions": len(files),
            "total_size_bytes": sum(f.stat().st_size for f in files if f.exists()),
            "storage_path": str(self.base_path.absolute()),
        }


class StorageManager:
    """Main storage manager that provides a unified interface."""

    def __init__(self, storage_type: str = "memory", **kwargs):
        """Initialize the storage manager.

        Args:
            storage_type: Type of storage to use ("memory" or "file").
            **kwargs: Additional backend configuration parameters.
        """
        self.storage_type = storage_type

        if storage_type == "memory":
            self.storage_interface: StorageInterface = InMemoryStorage()
        elif storage_type == "file":
            self.storage_interface = FileStorageManager(**kwargs)
        else:
            raise StorageError(f"Unsupported storage type: {storage_type}")

    def initialize(self) -> None:
        """Initialize the storage backend."""
        self.storage_interface.initialize()

    async def create_session(self, session: Session) -> Session:
        return await self.storage_interface.create_session(session)

    async def load_session(self, session_id: str) -> Optional[Session]:
        return await self.storage_interface.load_session(session_id)

    async def list_sessions(self, owner_id: str) -> List[Session]:
        return await self.storage_interface.list_sessions(owner_id)

    async def list_responses(self, session_id: str) -> List[ResponseRecord]:
        return await self.storage_interface.list_responses(session_id)

    async def load_feedback(self, session_id: str) -> Optional[Feedback]:
        return await self.storage_interface.load_feedback(session_id)

    async def commit_response(self, record: ResponseRecord, session: Session, expected_index: int) -> Session:
        return await self.storage_interface.commit_response(record, session, expected_index)

    async def commit_feedback(self, feedback: Feedback, session: Session) -> Feedback:
        return await self.storage_interface.commit_feedback(feedback, session)

    async def delete_session(self, session_id: str) -> bool:
        return await self.storage_interface.delete_session(session_id)

    def get_storage_stats(self) -> Dict[str, object]:
        """Get storage statistics, if the backend provides them."""
        if hasattr(self.storage_interface, "get_storage_stats"):
            return self.storage_interface.get_storage_stats()
        return {}
