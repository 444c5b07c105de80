"""SQLite-backed capability store.

Holds agent profiles, capability inventories, learnings, improvement requests
and saved daily reports. Every operation opens its own connection; writes run
inside a ``BEGIN IMMEDIATE`` transaction so concurrent writers are serialized
by SQLite, and writes for the same agent are additionally serialized by a
per-agent lock.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from agentforge.agents.registry import DefinitionCatalog
from agentforge.agents.schema import AgentDefinition, CapabilityType
from agentforge.utils.error_handler import (
    AgentNotFoundError,
    GovernanceViolationError,
    ReportNotFoundError,
    RequestNotFoundError,
)

from .records import (
    CAPABILITY_FOR_REQUEST,
    AgentProfile,
    AgentStatus,
    Capability,
    CapabilityOrigin,
    DailyReportRecord,
    ImprovementRequest,
    Learning,
    LearningProvenance,
    Level,
    RequestStatus,
    RequestType,
)

LOGGER = logging.getLogger(__name__)

# Weights of the performance rating formula
SUCCESS_WEIGHT = 0.4
SATISFACTION_WEIGHT = 0.4
CONSISTENCY_WEIGHT = 0.2
RATING_WINDOW_DAYS = 30
DEFAULT_METRIC = 50.0
# Seconds a write waits for a lock held by another connection
DEFAULT_BUSY_TIMEOUT = 5.0

_SCHEMA = """
CREATE TABLE IF NOT EXISTS agents (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    category TEXT NOT NULL,
    specialization TEXT NOT NULL,
    performance_rating REAL NOT NULL DEFAULT 50,
    success_rate REAL NOT NULL DEFAULT 0,
    tasks_completed INTEGER NOT NULL DEFAULT 0,
    avg_response_time REAL NOT NULL DEFAULT 0,
    status TEXT NOT NULL DEFAULT 'active',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS capabilities (
    id TEXT PRIMARY KEY,
    agent_id TEXT NOT NULL REFERENCES agents(id),
    type TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    origin TEXT NOT NULL,
    request_id TEXT,
    created_at TEXT NOT NULL,
    UNIQUE (agent_id, type, name)
);

CREATE TABLE IF NOT EXISTS learnings (
    id TEXT PRIMARY KEY,
    agent_id TEXT NOT NULL REFERENCES agents(id),
    text TEXT NOT NULL,
    provenance TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_learnings_agent_time ON learnings (agent_id, created_at);

CREATE TABLE IF NOT EXISTS improvement_requests (
    id TEXT PRIMARY KEY,
    agent_id TEXT NOT NULL REFERENCES agents(id),
    request_type TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT NOT NULL,
    benefit_estimate TEXT NOT NULL,
    cost_estimate INTEGER NOT NULL,
    risk_level TEXT NOT NULL,
    priority TEXT NOT NULL,
    status TEXT NOT NULL,
    created_at TEXT NOT NULL,
    reviewed_by TEXT,
    reviewed_at TEXT,
    rejection_reason TEXT
);
CREATE INDEX IF NOT EXISTS idx_requests_agent_status ON improvement_requests (agent_id, status);

CREATE TABLE IF NOT EXISTS daily_reports (
    agent_id TEXT NOT NULL REFERENCES agents(id),
    report_date TEXT NOT NULL,
    tasks_completed INTEGER NOT NULL,
    success_rate REAL NOT NULL,
    avg_response_time REAL NOT NULL,
    performance_rating REAL NOT NULL,
    learnings_count INTEGER NOT NULL,
    improvements_count INTEGER NOT NULL,
    highlights_json TEXT NOT NULL,
    concerns_json TEXT NOT NULL,
    learning_outcomes_json TEXT NOT NULL DEFAULT '[]',
    recommendations_json TEXT NOT NULL DEFAULT '[]',
    status TEXT NOT NULL DEFAULT 'pending',
    reviewed_by TEXT,
    reviewed_at TEXT,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (agent_id, report_date)
);
"""

# Review columns added to daily_reports after its first release
_REPORT_REVIEW_COLUMNS = {
    "learning_outcomes_json": "TEXT NOT NULL DEFAULT '[]'",
    "recommendations_json": "TEXT NOT NULL DEFAULT '[]'",
    "status": "TEXT NOT NULL DEFAULT 'pending'",
    "reviewed_by": "TEXT",
    "reviewed_at": "TEXT",
}

_RISK_RANK_SQL = "CASE risk_level WHEN 'high' THEN 0 WHEN 'medium' THEN 1 ELSE 2 END"

_REPORT_SELECT_SQL = (
    "SELECT r.*, a.name AS agent_name, a.category AS agent_category "
    "FROM daily_reports r JOIN agents a ON a.id = r.agent_id"
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_db_time(value: datetime) -> str:
    """Fixed-width UTC ISO string; lexical order equals chronological order."""
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_db_time(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _new_id() -> str:
    return str(uuid.uuid4())


def _report_day(value: date | str) -> str:
    return value.isoformat() if isinstance(value, date) else date.fromisoformat(value).isoformat()


class CapabilityStore:
    """Durable record of agent profiles, capabilities, learnings, requests and reports.

    Operations are synchronous and are called directly from the async engine
    and research cycle, so a write that waits on another process's lock
    blocks the event loop for up to ``busy_timeout`` seconds. Keep the
    timeout short when several processes share one database file.
    """

    def __init__(
        self,
        db_path: str | Path = "data/agentforge.db",
        clock: Optional[Callable[[], datetime]] = None,
        busy_timeout: float = DEFAULT_BUSY_TIMEOUT,
    ):
        """Initialize the store and create the schema if needed.

        Args:
            db_path: Path to the SQLite database file
            clock: Returns the current time (timezone-aware); defaults to UTC now
            busy_timeout: Seconds to wait for another connection's write lock
        """
        db_path = Path(db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)

        self.db_path = str(db_path)
        self.busy_timeout = busy_timeout
        self._clock = clock or _utc_now
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._init_db()

    # ========== Connection handling ==========

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.busy_timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_db(self) -> None:
        conn = self._connect()
        try:
            conn.executescript(_SCHEMA)
            existing = {row["name"] for row in conn.execute("PRAGMA table_info(daily_reports)")}
            for column, definition in _REPORT_REVIEW_COLUMNS.items():
                if column not in existing:
                    conn.execute(f"ALTER TABLE daily_reports ADD COLUMN {column} {definition}")
                    LOGGER.info(f"Added {column} column to daily_reports table")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_reports_status ON daily_reports (status, report_date)")
        finally:
            conn.close()

    @contextmanager
    def _read(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _write(self) -> Iterator[sqlite3.Connection]:
        """Open a connection inside an immediate (write-locked) transaction."""
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()

    def _agent_lock(self, agent_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(agent_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[agent_id] = lock
            return lock

    def _now(self) -> datetime:
        return self._clock()

    def _today(self) -> date:
        return self._now().astimezone().date()

    # ========== Row conversion ==========

    @staticmethod
    def _row_to_profile(row: sqlite3.Row) -> AgentProfile:
        return AgentProfile(
            id=row["id"],
            name=row["name"],
            category=row["category"],
            specialization=row["specialization"],
            performance_rating=row["performance_rating"],
            success_rate=row["success_rate"],
            tasks_completed=row["tasks_completed"],
            avg_response_time=row["avg_response_time"],
            status=AgentStatus(row["status"]),
            created_at=_from_db_time(row["created_at"]),
            updated_at=_from_db_time(row["updated_at"]),
        )

    @staticmethod
    def _row_to_capability(row: sqlite3.Row) -> Capability:
        return Capability(
            id=row["id"],
            agent_id=row["agent_id"],
            type=CapabilityType(row["type"]),
            name=row["name"],
            description=row["description"],
            origin=CapabilityOrigin(row["origin"]),
            request_id=row["request_id"],
            created_at=_from_db_time(row["created_at"]),
        )

    @staticmethod
    def _row_to_learning(row: sqlite3.Row) -> Learning:
        return Learning(
            id=row["id"],
            agent_id=row["agent_id"],
            text=row["text"],
            provenance=LearningProvenance(row["provenance"]),
            created_at=_from_db_time(row["created_at"]),
        )

    @staticmethod
    def _row_to_request(row: sqlite3.Row) -> ImprovementRequest:
        return ImprovementRequest(
            id=row["id"],
            agent_id=row["agent_id"],
            request_type=RequestType(row["request_type"]),
            title=row["title"],
            description=row["description"],
            benefit_estimate=row["benefit_estimate"],
            cost_estimate=row["cost_estimate"],
            risk_level=Level(row["risk_level"]),
            priority=Level(row["priority"]),
            status=RequestStatus(row["status"]),
            created_at=_from_db_time(row["created_at"]),
            reviewed_by=row["reviewed_by"],
            reviewed_at=_from_db_time(row["reviewed_at"]),
            rejection_reason=row["rejection_reason"],
        )

    @staticmethod
    def _row_to_report(row: sqlite3.Row) -> DailyReportRecord:
        return DailyReportRecord(
            agent_id=row["agent_id"],
            report_date=date.fromisoformat(row["report_date"]),
            tasks_completed=row["tasks_completed"],
            success_rate=row["success_rate"],
            avg_response_time=row["avg_response_time"],
            performance_rating=row["performance_rating"],
            learnings_count=row["learnings_count"],
            improvements_count=row["improvements_count"],
            highlights=tuple(json.loads(row["highlights_json"])),
            concerns=tuple(json.loads(row["concerns_json"])),
            learning_outcomes=tuple(json.loads(row["learning_outcomes_json"])),
            recommendations=tuple(json.loads(row["recommendations_json"])),
            status=RequestStatus(row["status"]),
            reviewed_by=row["reviewed_by"],
            reviewed_at=_from_db_time(row["reviewed_at"]),
            agent_name=row["agent_name"],
            agent_category=row["agent_category"],
        )

    def _fetch_profile(self, conn: sqlite3.Connection, agent_id: str) -> AgentProfile:
        row = conn.execute("SELECT * FROM agents WHERE id = ?", (agent_id,)).fetchone()
        if row is None:
            raise AgentNotFoundError(agent_id)
        return self._row_to_profile(row)

    def _fetch_request(self, conn: sqlite3.Connection, request_id: str) -> ImprovementRequest:
        row = conn.execute("SELECT * FROM improvement_requests WHERE id = ?", (request_id,)).fetchone()
        if row is None:
            raise RequestNotFoundError(request_id)
        return self._row_to_request(row)

    # ========== Profiles ==========

    def get_profile(self, agent_id: str) -> AgentProfile:
        """Return the profile snapshot for an agent.

        Raises:
            AgentNotFoundError: No agent with that id
        """
        with self._read() as conn:
            return self._fetch_profile(conn, agent_id)

    def find_profile_by_name(self, name: str) -> Optional[AgentProfile]:
        with self._read() as conn:
            row = conn.execute("SELECT * FROM agents WHERE name = ?", (name,)).fetchone()
            return self._row_to_profile(row) if row else None

    def list_profiles(self, include_archived: bool = False, category: Optional[str] = None) -> List[AgentProfile]:
        query = "SELECT * FROM agents WHERE 1 = 1"
        params: list = []
        if not include_archived:
            query += " AND status != ?"
            params.append(AgentStatus.ARCHIVED.value)
        if category:
            query += " AND category = ?"
            params.append(category)
        query += " ORDER BY category, name"
        with self._read() as conn:
            return [self._row_to_profile(row) for row in conn.execute(query, params)]

    def create_agent(self, definition: AgentDefinition, performance_rating: float = 50.0) -> AgentProfile:
        """Create a profile for a definition and seed its capability inventory.

        Args:
            definition: Catalog definition the profile links to (by name)
            performance_rating: Starting rating

        Returns:
            The new profile

        Raises:
            ValueError: A profile with the same name already exists
        """
        agent_id = _new_id()
        now = _to_db_time(self._now())
        with self._write() as conn:
            existing = conn.execute("SELECT id FROM agents WHERE name = ?", (definition.name,)).fetchone()
            if existing:
                raise ValueError(f"Agent already exists: {definition.name}")
            conn.execute(
                """INSERT INTO agents (id, name, category, specialization, performance_rating,
                                       status, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    agent_id, definition.name, definition.category, definition.specialization,
                    float(performance_rating), AgentStatus.ACTIVE.value, now, now,
                ),
            )
            for cap_type, names in definition.seed_capabilities().items():
                for name in names:
                    conn.execute(
                        """INSERT OR IGNORE INTO capabilities
                           (id, agent_id, type, name, description, origin, created_at)
                           VALUES (?, ?, ?, ?, ?, ?, ?)""",
                        (_new_id(), agent_id, cap_type.value, name, "", CapabilityOrigin.DEFINITION.value, now),
                    )
            profile = self._fetch_profile(conn, agent_id)

        LOGGER.info(f"Created agent {definition.name} ({agent_id})")
        return profile

    def seed_from_catalog(self, catalog: DefinitionCatalog | Iterable[AgentDefinition]) -> List[AgentProfile]:
        """Create a profile for every definition that has none yet.

        Returns:
            Profiles created by this call (empty when everything was seeded before)
        """
        definitions = catalog.list_all() if isinstance(catalog, DefinitionCatalog) else list(catalog)
        created = []
        for definition in definitions:
            if self.find_profile_by_name(definition.name) is None:
                created.append(self.create_agent(definition))
        LOGGER.info(f"Seeded {len(created)} new agents ({len(definitions)} definitions)")
        return created

    def archive_agent(self, agent_id: str) -> AgentProfile:
        """Retire an agent. Profiles are never deleted."""
        with self._agent_lock(agent_id), self._write() as conn:
            self._fetch_profile(conn, agent_id)
            conn.execute(
                "UPDATE agents SET status = ?, updated_at = ? WHERE id = ?",
                (AgentStatus.ARCHIVED.value, _to_db_time(self._now()), agent_id),
            )
            return self._fetch_profile(conn, agent_id)

    def record_execution(self, agent_id: str, success: bool, duration_ms: float) -> AgentProfile:
        """Fold one execution outcome into the agent's cumulative metrics.

        success_rate is the running mean of 100 (success) / 0 (failure) and
        avg_response_time the running mean of durations.

        Returns:
            The profile after the update

        Raises:
            AgentNotFoundError: No agent with that id
        """
        duration_ms = max(0.0, float(duration_ms))
        with self._agent_lock(agent_id), self._write() as conn:
            profile = self._fetch_profile(conn, agent_id)
            completed = profile.tasks_completed
            new_completed = completed + 1
            outcome = 100.0 if success else 0.0
            success_rate = (profile.success_rate * completed + outcome) / new_completed
            avg_response_time = (profile.avg_response_time * completed + duration_ms) / new_completed

            conn.execute(
                """UPDATE agents
                   SET tasks_completed = ?, success_rate = ?, avg_response_time = ?, updated_at = ?
                   WHERE id = ?""",
                (new_completed, success_rate, avg_response_time, _to_db_time(self._now()), agent_id),
            )
            return self._fetch_profile(conn, agent_id)

    def get_leaderboard(self, limit: int = 10) -> List[AgentProfile]:
        """Active agents ordered by performance rating, best first."""
        with self._read() as conn:
            rows = conn.execute(
                """SELECT * FROM agents WHERE status = ?
                   ORDER BY performance_rating DESC, success_rate DESC, name
                   LIMIT ?""",
                (AgentStatus.ACTIVE.value, limit),
            )
            return [self._row_to_profile(row) for row in rows]

    def get_underperformers(self, threshold: float = 60) -> List[AgentProfile]:
        """Active agents whose performance rating is below the threshold, worst first."""
        with self._read() as conn:
            rows = conn.execute(
                """SELECT * FROM agents WHERE status = ? AND performance_rating < ?
                   ORDER BY performance_rating, name""",
                (AgentStatus.ACTIVE.value, threshold),
            )
            return [self._row_to_profile(row) for row in rows]

    def update_performance_rating(self, agent_id: str) -> int:
        """Recompute the rating from the saved daily reports of the last 30 days.

        rating = 0.4 * avg success rate + 0.4 * user satisfaction
                 + 0.2 * min(100, reports / 30 * 100)

        A missing average counts as 50. User satisfaction is not tracked and
        always counts as 50.
        """
        since = (self._today() - timedelta(days=RATING_WINDOW_DAYS)).isoformat()
        with self._agent_lock(agent_id), self._write() as conn:
            self._fetch_profile(conn, agent_id)
            row = conn.execute(
                """SELECT AVG(success_rate) AS avg_success, COUNT(*) AS report_count
                   FROM daily_reports WHERE agent_id = ? AND report_date >= ?""",
                (agent_id, since),
            ).fetchone()

            avg_success = row["avg_success"] if row["avg_success"] is not None else DEFAULT_METRIC
            consistency = min(100.0, row["report_count"] / RATING_WINDOW_DAYS * 100)
            rating = round(
                avg_success * SUCCESS_WEIGHT
                + DEFAULT_METRIC * SATISFACTION_WEIGHT
                + consistency * CONSISTENCY_WEIGHT
            )

            conn.execute(
                "UPDATE agents SET performance_rating = ?, updated_at = ? WHERE id = ?",
                (rating, _to_db_time(self._now()), agent_id),
            )

        LOGGER.info(f"Performance rating for {agent_id} updated to {rating}")
        return rating

    # ========== Capabilities ==========

    def list_capabilities(self, agent_id: str, cap_type: Optional[CapabilityType] = None) -> List[Capability]:
        query = "SELECT * FROM capabilities WHERE agent_id = ?"
        params: list = [agent_id]
        if cap_type is not None:
            query += " AND type = ?"
            params.append(CapabilityType(cap_type).value)
        query += " ORDER BY created_at, type, name"
        with self._read() as conn:
            return [self._row_to_capability(row) for row in conn.execute(query, params)]

    def _upsert_capability(
        self,
        conn: sqlite3.Connection,
        agent_id: str,
        cap_type: CapabilityType,
        name: str,
        description: str,
        request_id: str,
    ) -> Capability:
        conn.execute(
            """INSERT INTO capabilities (id, agent_id, type, name, description, origin, request_id, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT (agent_id, type, name) DO UPDATE SET
                   description = excluded.description,
                   origin = excluded.origin,
                   request_id = excluded.request_id""",
            (
                _new_id(), agent_id, cap_type.value, name, description,
                CapabilityOrigin.APPROVED_REQUEST.value, request_id, _to_db_time(self._now()),
            ),
        )
        row = conn.execute(
            "SELECT * FROM capabilities WHERE agent_id = ? AND type = ? AND name = ?",
            (agent_id, cap_type.value, name),
        ).fetchone()
        return self._row_to_capability(row)

    def add_capability(
        self,
        agent_id: str,
        cap_type: CapabilityType | str,
        name: str,
        description: str,
        request_id: str,
    ) -> Capability:
        """Add a capability backed by an approved improvement request.

        This is the only public way to grow an inventory. Adding an existing
        (agent, type, name) capability updates it in place.

        Raises:
            GovernanceViolationError: The request is missing, not approved,
                or belongs to another agent
        """
        cap_type = CapabilityType(cap_type)
        with self._agent_lock(agent_id), self._write() as conn:
            self._fetch_profile(conn, agent_id)
            try:
                request = self._fetch_request(conn, request_id)
            except RequestNotFoundError as exc:
                raise GovernanceViolationError(
                    f"Capability '{name}' has no backing request: {request_id}"
                ) from exc
            if request.status != RequestStatus.APPROVED or request.agent_id != agent_id:
                raise GovernanceViolationError(
                    f"Capability '{name}' requires an approved request for agent {agent_id} "
                    f"(request {request_id} is {request.status.value})"
                )
            return self._upsert_capability(conn, agent_id, cap_type, name, description, request_id)

    # ========== Learnings ==========

    def append_learning(
        self,
        agent_id: str,
        text: str,
        provenance: LearningProvenance | str = LearningProvenance.TASK,
    ) -> Learning:
        """Append one learning. Learnings are never updated or deleted."""
        learning = Learning(
            id=_new_id(),
            agent_id=agent_id,
            text=text,
            provenance=LearningProvenance(provenance),
            created_at=self._now(),
        )
        with self._agent_lock(agent_id), self._write() as conn:
            self._fetch_profile(conn, agent_id)
            conn.execute(
                "INSERT INTO learnings (id, agent_id, text, provenance, created_at) VALUES (?, ?, ?, ?, ?)",
                (learning.id, agent_id, text, learning.provenance.value, _to_db_time(learning.created_at)),
            )
        return learning

    def list_recent_learnings(
        self,
        agent_id: str,
        since: datetime,
        provenance: Optional[LearningProvenance] = None,
    ) -> List[Learning]:
        """Learnings created at or after ``since``, oldest first."""
        query = "SELECT * FROM learnings WHERE agent_id = ? AND created_at >= ?"
        params: list = [agent_id, _to_db_time(since)]
        if provenance is not None:
            query += " AND provenance = ?"
            params.append(LearningProvenance(provenance).value)
        query += " ORDER BY created_at, rowid"
        with self._read() as conn:
            return [self._row_to_learning(row) for row in conn.execute(query, params)]

    # ========== Improvement requests ==========

    def create_improvement_request(self, request: ImprovementRequest) -> str:
        """Persist a new pending request and return its id.

        Raises:
            AgentNotFoundError: The request's agent does not exist
            GovernanceViolationError: The request is not pending
        """
        if request.status != RequestStatus.PENDING:
            raise GovernanceViolationError(
                f"New improvement requests must be pending, got {request.status.value}"
            )
        request = replace(
            request,
            id=request.id or _new_id(),
            created_at=request.created_at or self._now(),
        )
        with self._agent_lock(request.agent_id), self._write() as conn:
            self._fetch_profile(conn, request.agent_id)
            conn.execute(
                """INSERT INTO improvement_requests
                   (id, agent_id, request_type, title, description, benefit_estimate, cost_estimate,
                    risk_level, priority, status, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    request.id, request.agent_id, RequestType(request.request_type).value, request.title,
                    request.description, request.benefit_estimate, int(request.cost_estimate),
                    Level(request.risk_level).value, Level(request.priority).value,
                    RequestStatus.PENDING.value, _to_db_time(request.created_at),
                ),
            )
        LOGGER.info(f"Created improvement request {request.id} for {request.agent_id}")
        return request.id

    def get_request(self, request_id: str) -> ImprovementRequest:
        with self._read() as conn:
            return self._fetch_request(conn, request_id)

    def list_requests(self, agent_id: str, status: Optional[RequestStatus] = None) -> List[ImprovementRequest]:
        """Requests of one agent, newest first."""
        query = "SELECT * FROM improvement_requests WHERE agent_id = ?"
        params: list = [agent_id]
        if status is not None:
            query += " AND status = ?"
            params.append(RequestStatus(status).value)
        query += " ORDER BY created_at DESC, rowid DESC"
        with self._read() as conn:
            return [self._row_to_request(row) for row in conn.execute(query, params)]

    def list_pending_improvement_requests(self, agent_id: str) -> List[ImprovementRequest]:
        """Pending requests of one agent, oldest first."""
        with self._read() as conn:
            rows = conn.execute(
                """SELECT * FROM improvement_requests WHERE agent_id = ? AND status = ?
                   ORDER BY created_at, rowid""",
                (agent_id, RequestStatus.PENDING.value),
            )
            return [self._row_to_request(row) for row in rows]

    def list_all_pending_requests(self) -> List[ImprovementRequest]:
        """The review queue: all pending requests, riskiest and costliest first."""
        with self._read() as conn:
            rows = conn.execute(
                f"""SELECT * FROM improvement_requests WHERE status = ?
                    ORDER BY {_RISK_RANK_SQL}, cost_estimate DESC, created_at""",
                (RequestStatus.PENDING.value,),
            )
            return [self._row_to_request(row) for row in rows]

    def has_recent_request(
        self,
        agent_id: str,
        description: str,
        statuses: Iterable[RequestStatus],
        since: Optional[datetime] = None,
    ) -> bool:
        """Whether the agent has a request with this exact description in one of
        ``statuses``, reviewed (or, if unreviewed, created) at or after ``since``."""
        status_values = [RequestStatus(s).value for s in statuses]
        if not status_values:
            return False
        placeholders = ", ".join("?" for _ in status_values)
        query = (
            f"SELECT 1 FROM improvement_requests WHERE agent_id = ? AND description = ? "
            f"AND status IN ({placeholders})"
        )
        params: list = [agent_id, description, *status_values]
        if since is not None:
            query += " AND COALESCE(reviewed_at, created_at) >= ?"
            params.append(_to_db_time(since))
        with self._read() as conn:
            return conn.execute(query + " LIMIT 1", params).fetchone() is not None

    def approve_request(self, request_id: str, reviewer: str) -> ImprovementRequest:
        """Approve a pending request and add the capability it asks for.

        The status change and the capability are written in one transaction.

        Raises:
            RequestNotFoundError: No request with that id
            GovernanceViolationError: The request is not pending
        """
        agent_id = self.get_request(request_id).agent_id
        with self._agent_lock(agent_id), self._write() as conn:
            request = self._fetch_request(conn, request_id)
            self._ensure_pending(request)
            conn.execute(
                """UPDATE improvement_requests SET status = ?, reviewed_by = ?, reviewed_at = ?
                   WHERE id = ?""",
                (RequestStatus.APPROVED.value, reviewer, _to_db_time(self._now()), request_id),
            )
            capability = self._upsert_capability(
                conn,
                agent_id,
                CAPABILITY_FOR_REQUEST[request.request_type],
                request.title,
                request.description,
                request_id,
            )
            approved = self._fetch_request(conn, request_id)

        LOGGER.info(f"Request {request_id} approved by {reviewer}; added {capability.type.value} '{capability.name}'")
        return approved

    def reject_request(self, request_id: str, reviewer: str, reason: str) -> ImprovementRequest:
        """Reject a pending request.

        Raises:
            RequestNotFoundError: No request with that id
            GovernanceViolationError: The request is not pending
        """
        agent_id = self.get_request(request_id).agent_id
        with self._agent_lock(agent_id), self._write() as conn:
            request = self._fetch_request(conn, request_id)
            self._ensure_pending(request)
            conn.execute(
                """UPDATE improvement_requests
                   SET status = ?, reviewed_by = ?, reviewed_at = ?, rejection_reason = ?
                   WHERE id = ?""",
                (RequestStatus.REJECTED.value, reviewer, _to_db_time(self._now()), reason, request_id),
            )
            rejected = self._fetch_request(conn, request_id)

        LOGGER.info(f"Request {request_id} rejected by {reviewer}: {reason}")
        return rejected

    @staticmethod
    def _ensure_pending(request: ImprovementRequest) -> None:
        if request.status != RequestStatus.PENDING:
            raise GovernanceViolationError(
                f"Request {request.id} is already {request.status.value}"
            )

    # ========== Daily reports ==========

    def save_daily_report(self, report: DailyReportRecord) -> None:
        """Insert or replace the report for (agent_id, report_date).

        A replaced report returns to pending review; earlier review fields are cleared.
        """
        with self._agent_lock(report.agent_id), self._write() as conn:
            self._fetch_profile(conn, report.agent_id)
            conn.execute(
                """INSERT INTO daily_reports
                   (agent_id, report_date, tasks_completed, success_rate, avg_response_time,
                    performance_rating, learnings_count, improvements_count,
                    highlights_json, concerns_json, learning_outcomes_json, recommendations_json,
                    status, reviewed_by, reviewed_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, NULL, NULL, ?)
                   ON CONFLICT (agent_id, report_date) DO UPDATE SET
                       tasks_completed = excluded.tasks_completed,
                       success_rate = excluded.success_rate,
                       avg_response_time = excluded.avg_response_time,
                       performance_rating = excluded.performance_rating,
                       learnings_count = excluded.learnings_count,
                       improvements_count = excluded.improvements_count,
                       highlights_json = excluded.highlights_json,
                       concerns_json = excluded.concerns_json,
                       learning_outcomes_json = excluded.learning_outcomes_json,
                       recommendations_json = excluded.recommendations_json,
                       status = excluded.status,
                       reviewed_by = NULL,
                       reviewed_at = NULL,
                       updated_at = excluded.updated_at""",
                (
                    report.agent_id, report.report_date.isoformat(), report.tasks_completed,
                    report.success_rate, report.avg_response_time, report.performance_rating,
                    report.learnings_count, report.improvements_count,
                    json.dumps(list(report.highlights), ensure_ascii=False),
                    json.dumps(list(report.concerns), ensure_ascii=False),
                    json.dumps(list(report.learning_outcomes), ensure_ascii=False),
                    json.dumps(list(report.recommendations), ensure_ascii=False),
                    RequestStatus.PENDING.value,
                    _to_db_time(self._now()),
                ),
            )

    def _fetch_report(self, conn: sqlite3.Connection, agent_id: str, report_date: str) -> DailyReportRecord:
        row = conn.execute(
            f"{_REPORT_SELECT_SQL} WHERE r.agent_id = ? AND r.report_date = ?",
            (agent_id, report_date),
        ).fetchone()
        if row is None:
            raise ReportNotFoundError(agent_id, report_date)
        return self._row_to_report(row)

    def get_daily_report(self, agent_id: str, report_date: date | str) -> DailyReportRecord:
        """Return one saved report.

        Raises:
            ReportNotFoundError: Nothing saved for that agent and date
        """
        with self._read() as conn:
            return self._fetch_report(conn, agent_id, _report_day(report_date))

    def list_daily_reports(self, agent_id: str, limit: int = 30) -> List[DailyReportRecord]:
        """Saved reports of one agent, most recent date first."""
        with self._read() as conn:
            rows = conn.execute(
                f"{_REPORT_SELECT_SQL} WHERE r.agent_id = ? ORDER BY r.report_date DESC LIMIT ?",
                (agent_id, limit),
            )
            return [self._row_to_report(row) for row in rows]

    def list_pending_reports(self) -> List[DailyReportRecord]:
        """The report review queue: pending reports of all agents, oldest date first."""
        with self._read() as conn:
            rows = conn.execute(
                f"{_REPORT_SELECT_SQL} WHERE r.status = ? ORDER BY r.report_date, a.name",
                (RequestStatus.PENDING.value,),
            )
            return [self._row_to_report(row) for row in rows]

    def review_report(
        self,
        agent_id: str,
        report_date: date | str,
        status: RequestStatus | str,
        reviewer: str,
    ) -> DailyReportRecord:
        """Approve or reject a pending daily report.

        Raises:
            ValueError: ``status`` is not approved or rejected
            ReportNotFoundError: Nothing saved for that agent and date
            GovernanceViolationError: The report was already reviewed
        """
        status = RequestStatus(status)
        if status == RequestStatus.PENDING:
            raise ValueError("A report review must approve or reject")
        day = _report_day(report_date)

        with self._agent_lock(agent_id), self._write() as conn:
            report = self._fetch_report(conn, agent_id, day)
            if report.status != RequestStatus.PENDING:
                raise GovernanceViolationError(
                    f"Daily report {agent_id} {day} is already {report.status.value}"
                )
            conn.execute(
                """UPDATE daily_reports SET status = ?, reviewed_by = ?, reviewed_at = ?
                   WHERE agent_id = ? AND report_date = ?""",
                (status.value, reviewer, _to_db_time(self._now()), agent_id, day),
            )
            reviewed = self._fetch_report(conn, agent_id, day)

        LOGGER.info(f"Daily report {agent_id} {day} {status.value} by {reviewer}")
        return reviewed
