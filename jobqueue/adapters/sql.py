"""
Relational job adapter built on SQLAlchemy's async ORM.
"""

import json
import traceback
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import ColumnElement, and_, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from jobqueue.adapters.base import BaseAdapter
from jobqueue.adapters.models import BackgroundJob
from jobqueue.infra.database import Database, get_session
from jobqueue.jobs.schemas import ClaimedJob, FindArgs, SchedulePayload


class SQLAlchemyAdapter(BaseAdapter):
    """
    Job adapter for any database SQLAlchemy's async engine can talk to.

    Claiming does not rely on SELECT ... FOR UPDATE or any other engine
    specific locking. A candidate id is selected, then a conditional UPDATE
    re-applies the whole eligibility predicate to that id. Only one of several
    racing workers can see a rowcount of 1; the rest find nothing this poll.
    """

    def __init__(
        self,
        database: Database,
        model: type[BackgroundJob] = BackgroundJob,
        logger: Any = None,
    ):
        super().__init__(logger)
        self.database = database
        self.model = model

    def _eligible(self, args: FindArgs, now: datetime) -> ColumnElement[bool]:
        """
        `failed_at IS NULL AND ((run_at <= now AND (locked_at IS NULL OR
        locked_at < now - max_runtime)) OR locked_by = process_name)`,
        restricted to `queues` unless they are the wildcard.
        """
        job = self.model
        stale_before = now - timedelta(seconds=args.max_runtime)

        clauses = [
            job.failed_at.is_(None),
            or_(
                and_(
                    job.run_at <= now,
                    or_(job.locked_at.is_(None), job.locked_at < stale_before),
                ),
                job.locked_by == args.process_name,
            ),
        ]
        if not args.is_wildcard():
            clauses.append(job.queue.in_(args.queues))

        return and_(*clauses)

    async def _select_candidate(
        self, session: AsyncSession, eligible: ColumnElement[bool]
    ) -> int | None:
        return await session.scalar(
            select(self.model.id)
            .where(eligible)
            .order_by(self.model.priority, self.model.run_at)
            .limit(1)
        )

    async def _claim(
        self,
        session: AsyncSession,
        job_id: int,
        eligible: ColumnElement[bool],
        process_name: str,
        now: datetime,
    ) -> bool:
        """Lock `job_id` if it is still eligible. Returns False if another worker got it first."""
        result = await session.execute(
            update(self.model)
            .where(eligible, self.model.id == job_id)
            .values(
                locked_at=now,
                locked_by=process_name,
                attempts=self.model.attempts + 1,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        await session.commit()
        return result.rowcount == 1

    async def find(self, args: FindArgs) -> ClaimedJob | None:
        now = datetime.now(UTC)
        eligible = self._eligible(args, now)

        async with get_session(self.database) as session:
            job_id = await self._select_candidate(session, eligible)
            if job_id is None:
                return None

            if not await self._claim(session, job_id, eligible, args.process_name, now):
                self.logger.debug(
                    "Job claimed by another worker",
                    job_id=job_id,
                    process_name=args.process_name,
                )
                return None

            row = await session.get(self.model, job_id, populate_existing=True)
            return ClaimedJob.model_validate(row)

    async def success(self, job: ClaimedJob, delete_job: bool) -> None:
        self.logger.debug("Job success", job_id=job.id, delete_job=delete_job)

        async with get_session(self.database) as session:
            if delete_job:
                await session.execute(delete(self.model).where(self.model.id == job.id))
            else:
                await session.execute(
                    update(self.model)
                    .where(self.model.id == job.id)
                    .values(
                        locked_at=None,
                        locked_by=None,
                        last_error=None,
                        run_at=None,
                    )
                )
            await session.commit()

    async def error(self, job: ClaimedJob, error: BaseException) -> None:
        self.logger.debug("Job failure", job_id=job.id, attempts=job.attempts)

        now = datetime.now(UTC)
        run_at = now + timedelta(milliseconds=self.backoff_milliseconds(job.attempts))
        stack = "".join(traceback.format_exception(error))

        async with get_session(self.database) as session:
            await session.execute(
                update(self.model)
                .where(self.model.id == job.id)
                .values(
                    locked_at=None,
                    locked_by=None,
                    last_error=f"{error}\n\n{stack}",
                    run_at=run_at,
                    updated_at=now,
                )
            )
            await session.commit()

    async def failure(self, job: ClaimedJob, delete_job: bool) -> None:
        self.logger.debug("Job permanently failed", job_id=job.id, delete_job=delete_job)

        async with get_session(self.database) as session:
            if delete_job:
                await session.execute(delete(self.model).where(self.model.id == job.id))
            else:
                now = datetime.now(UTC)
                await session.execute(
                    update(self.model)
                    .where(self.model.id == job.id)
                    .values(
                        locked_at=None,
                        locked_by=None,
                        failed_at=now,
                        updated_at=now,
                    )
                )
            await session.commit()

    async def schedule(self, payload: SchedulePayload) -> None:
        handler = json.dumps(
            {"name": payload.name, "path": payload.path, "args": payload.args}
        )

        async with get_session(self.database) as session:
            session.add(
                self.model(
                    handler=handler,
                    queue=payload.queue,
                    priority=payload.priority,
                    run_at=payload.run_at,
                )
            )
            await session.commit()

    async def clear(self) -> None:
        async with get_session(self.database) as session:
            await session.execute(delete(self.model))
            await session.commit()

    async def count(self) -> int:
        """Number of job rows in any state."""
        async with get_session(self.database) as session:
            return await session.scalar(select(func.count()).select_from(self.model))
