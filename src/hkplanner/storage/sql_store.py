"""SQLAlchemy-backed task store."""

from datetime import date
from typing import Optional

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from hkplanner.domain.models import (
    ChecklistItem,
    GeneratedTask,
    Priority,
    TaskSource,
    TaskStatus,
)
from hkplanner.exceptions import PersistenceError
from hkplanner.storage.task_store import TaskStore
from hkplanner.utils.logger import get_logger


logger = get_logger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///hkplanner.db"


class Base(DeclarativeBase):
    """Base class for all tables."""
    pass


class TaskRecord(Base):
    """Row of the housekeeping task table."""

    __tablename__ = "housekeeping_tasks"
    __table_args__ = (
        UniqueConstraint("room_id", "task_type", "scheduled_date", name="uq_task_room_type_date"),
    )

    id = Column(String(36), primary_key=True)
    property_id = Column(String(64), nullable=True)
    room_id = Column(String(64), nullable=False)
    room_number = Column(String(32), nullable=False)
    task_type = Column(String(64), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    priority = Column(String(10), nullable=False)
    status = Column(String(20), nullable=False)
    estimated_duration = Column(Integer, nullable=False)
    assigned_to = Column(String(64), nullable=False)
    assigned_to_name = Column(String(200), nullable=False)
    scheduled_date = Column(Date, nullable=False, index=True)
    scheduled_time = Column(DateTime, nullable=False)
    checklist = Column(JSON, nullable=False, default=list)
    instructions = Column(JSON, nullable=False, default=list)
    required_skills = Column(JSON, nullable=False, default=list)
    tools = Column(JSON, nullable=False, default=list)
    supplies = Column(JSON, nullable=False, default=list)
    source = Column(String(20), nullable=False)
    rule_name = Column(String(200), nullable=True)
    created_at = Column(DateTime, nullable=False)

    def __repr__(self) -> str:
        return f"<TaskRecord(room={self.room_id}, type='{self.task_type}', date={self.scheduled_date})>"

    def apply(self, task: GeneratedTask) -> None:
        """Copy a generated task's fields onto this row (id excluded)."""
        self.property_id = task.property_id
        self.room_id = task.room_id
        self.room_number = task.room_number
        self.task_type = task.task_type
        self.title = task.title
        self.description = task.description
        self.priority = task.priority.value
        self.status = task.status.value
        self.estimated_duration = task.estimated_duration_minutes
        self.assigned_to = task.assigned_to
        self.assigned_to_name = task.assigned_to_name
        self.scheduled_date = task.scheduled_date
        self.scheduled_time = task.scheduled_time
        self.checklist = [item.to_dict() for item in task.checklist]
        self.instructions = list(task.instructions)
        self.required_skills = list(task.required_skills)
        self.tools = list(task.tools)
        self.supplies = list(task.supplies)
        self.source = task.source.value
        self.rule_name = task.rule_name
        self.created_at = task.created_at

    def to_task(self) -> GeneratedTask:
        return GeneratedTask(
            id=self.id,
            room_id=self.room_id,
            room_number=self.room_number,
            property_id=self.property_id,
            task_type=self.task_type,
            title=self.title,
            description=self.description,
            priority=Priority(self.priority),
            status=TaskStatus(self.status),
            estimated_duration_minutes=self.estimated_duration,
            assigned_to=self.assigned_to,
            assigned_to_name=self.assigned_to_name,
            scheduled_date=self.scheduled_date,
            scheduled_time=self.scheduled_time,
            checklist=[ChecklistItem.from_dict(item) for item in self.checklist or []],
            instructions=list(self.instructions or []),
            required_skills=list(self.required_skills or []),
            tools=list(self.tools or []),
            supplies=list(self.supplies or []),
            source=TaskSource(self.source),
            rule_name=self.rule_name,
            created_at=self.created_at,
        )


def create_db_engine(database_url: str = DEFAULT_DATABASE_URL, echo: bool = False):
    """Create a SQLAlchemy engine; in-memory SQLite shares one connection."""
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, echo=echo)


class SqlTaskStore(TaskStore):
    """Task store persisting to a relational database.

    Each ``upsert_many`` call runs in its own transaction, so a failing batch
    leaves nothing behind while earlier batches stay committed.
    """

    def __init__(self, database_url: str = DEFAULT_DATABASE_URL, echo: bool = False):
        self.database_url = database_url
        self.engine = create_db_engine(database_url, echo=echo)
        self.SessionLocal = sessionmaker(bind=self.engine)
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        return self.SessionLocal()

    def upsert_many(self, tasks: list[GeneratedTask]) -> int:
        if not tasks:
            return 0

        batch_date = tasks[0].scheduled_date
        session = self.get_session()
        try:
            for task in tasks:
                record = session.execute(
                    select(TaskRecord).where(
                        TaskRecord.room_id == task.room_id,
                        TaskRecord.task_type == task.task_type,
                        TaskRecord.scheduled_date == task.scheduled_date,
                    )
                ).scalar_one_or_none()
                if record is None:
                    record = TaskRecord(id=task.id)
                    session.add(record)
                record.apply(task)
                # Flush so a repeated key later in the batch finds this row
                session.flush()
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise PersistenceError(
                f"Failed to persist {len(tasks)} tasks for {batch_date}: {exc}",
                scheduled_date=batch_date,
            ) from exc
        finally:
            session.close()

        logger.debug("Upserted %d tasks for %s", len(tasks), batch_date)
        return len(tasks)

    def all_tasks(self) -> list[GeneratedTask]:
        return self.tasks_for()

    def tasks_for(
        self,
        status: Optional[TaskStatus] = None,
        from_date: Optional[date] = None,
    ) -> list[GeneratedTask]:
        statement = select(TaskRecord)
        if status is not None:
            statement = statement.where(TaskRecord.status == status.value)
        if from_date is not None:
            statement = statement.where(TaskRecord.scheduled_date >= from_date)
        statement = statement.order_by(
            TaskRecord.scheduled_date,
            TaskRecord.scheduled_time,
            TaskRecord.assigned_to,
            TaskRecord.room_number,
        )
        with self.get_session() as session:
            return [record.to_task() for record in session.execute(statement).scalars()]
