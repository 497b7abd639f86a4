"""
NovaBase — Executor

The Executor drives one action through its whole life:

  1. Auth detection — a requestor carrying credentials must be authenticated
  2. Rate limiting — local (per action) and global limits, checked concurrently
  3. Acquisition — open a Dao from the Store, build the ActionContext
  4. Authentication — authenticator.authenticate() inside the context
  5. Input preparation — defaults under caller inputs, then the adapter
  6. Invocation — the action itself
  7. Commit — close the Dao, seal the context
  8. Deferred actions — run concurrently, all settle; a failure is held back
  9. Cache invalidation — clear the invalidated keys, once
 10. Delivery — dispatch Tasks and send Notices concurrently
 11. Completion — log elapsed time, then return the result or raise the held
     deferred failure or soft failure

Failure before commit rolls the Dao back and is reported as
"Failed to execute <action> action: ...". Failure after commit is reported as
is: the transaction and the side effects already happened, and a wrapped
message would wrongly suggest a rollback. A failed deferred action does not
skip invalidation or delivery for the committed work.

Soft failures are explicit: the action returns SoftFailure(error) or raises a
NovaError with allow_commit=True. An exception object that is *returned*
rather than raised is an ordinary result and is handed back to the caller.
Code ported from implementations that treat a resolved Error as a soft
failure must wrap it in SoftFailure.

An Executor is built once per action and reused. It keeps no per-call state,
so concurrent execute() calls on the same instance are safe.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

import structlog

from novabase.core.collaborators import (
    Dao,
    ExecutorServices,
    NoopLogger,
    UnavailableCache,
    validate_services,
)
from novabase.core.context import ActionContext
from novabase.core.registry import action_name
from novabase.core.types import (
    Action,
    ActionAdapter,
    AuthInputs,
    CloseAction,
    ExecutionOptions,
    ExecutionStage,
    Notice,
    RateLimits,
    Requestor,
    SoftFailure,
    Task,
)
from novabase.errors import ConfigurationError, NovaError, wrap_error
from novabase.util import since

logger = structlog.get_logger()


class Executor:
    """Runs one action end to end against a fixed set of collaborators."""

    def __init__(
        self,
        services: ExecutorServices,
        action: Action,
        adapter: ActionAdapter | None = None,
        options: ExecutionOptions | None = None,
    ) -> None:
        validate_services(services, options)
        if action is None:
            raise ConfigurationError("Cannot create an Executor: Action is undefined")
        if not callable(action):
            raise ConfigurationError("Cannot create an Executor: Action is not a function")
        if adapter is not None and not callable(adapter):
            raise ConfigurationError("Cannot create an Executor: Adapter is not a function")

        options = options or ExecutionOptions()

        self._store = services.store
        self._cache = services.cache if services.cache is not None else UnavailableCache()
        self._dispatcher = services.dispatcher
        self._notifier = services.notifier
        self._limiter = services.limiter
        self._authenticator = services.authenticator
        self._logger = services.logger if services.logger is not None else NoopLogger()
        self._settings = services.settings

        self._action = action
        self._adapter = adapter
        self._name = action_name(action)

        self._auth_options = options.auth_options
        self._dao_options = options.dao_options
        self._defaults = dict(options.defaults)
        self._rate_limits = RateLimits(local=options.rate_limits, global_=services.rate_limits)

        self._log = logger.bind(system="novabase.executor", action=self._name)

    # ─── Introspection ────────────────────────────────────────────

    @property
    def name(self) -> str:
        return self._name

    @property
    def action(self) -> Action:
        return self._action

    @property
    def adapter(self) -> ActionAdapter | None:
        return self._adapter

    @property
    def rate_limits(self) -> RateLimits:
        return self._rate_limits

    # ─── Execution ────────────────────────────────────────────────

    async def execute(
        self,
        inputs: Any = None,
        requestor: Requestor | AuthInputs | Mapping[str, Any] | str | None = None,
        timestamp: datetime | None = None,
    ) -> Any:
        """
        Run the action once.

        Returns the action's result, or raises: a wrapped error if anything
        failed before commit, the original error for soft failures and for
        anything that failed after commit.
        """
        start = time.perf_counter()
        stage = ExecutionStage.IDLE
        dao: Dao | None = None
        committed = False

        try:
            self._logger.debug(f"Executing {self._name} action")
            caller = _as_requestor(requestor)

            credentials: Any = None
            auth_required = caller.auth is not None
            if auth_required:
                if self._authenticator is None:
                    raise ConfigurationError("Cannot authenticate: authenticator is undefined")
                credentials = self._authenticator.decode(caller.auth)

            stage = ExecutionStage.RATE_LIMITING
            await self._enforce_rate_limits(caller, credentials, auth_required)

            stage = ExecutionStage.ACQUIRING
            dao = await self._store.acquire(self._dao_options)
            context = ActionContext(
                dao,
                self._cache,
                self._logger,
                self._settings,
                dispatch=self._dispatcher is not None,
                notify=self._notifier is not None,
                timestamp=timestamp,
            )

            auth_info: Any = None
            if auth_required:
                stage = ExecutionStage.AUTHENTICATING
                auth_info = await self._authenticator.authenticate(  # type: ignore[union-attr]
                    context, credentials, self._auth_options
                )

            stage = ExecutionStage.ADAPTING
            inputs = self._apply_defaults(inputs)
            if self._adapter is not None:
                inputs = await self._adapter(context, inputs, auth_info, caller.address)

            stage = ExecutionStage.INVOKING
            try:
                result = await self._action(context, inputs)
            except NovaError as error:
                if not error.allow_commit:
                    raise
                result = SoftFailure(error)

            stage = ExecutionStage.COMMITTING
            await dao.close(CloseAction.COMMIT if dao.in_transaction else None)
            committed = True
            context.seal()

            stage = ExecutionStage.DEFERRING
            deferred_failure = await self._run_deferred(context)

            stage = ExecutionStage.INVALIDATING
            if context.keys:
                await self._cache.clear(sorted(context.keys))

            stage = ExecutionStage.DELIVERING
            await asyncio.gather(
                self._dispatch(context.tasks),
                self._notify(context.notices),
            )

            stage = ExecutionStage.COMPLETED
            self._logger.log(f"Executed {self._name} action", {"time": since(start)})

            if deferred_failure is not None:
                raise deferred_failure
            if isinstance(result, SoftFailure):
                raise result.error
            return result

        except BaseException as error:
            if dao is not None and dao.is_active:
                await self._rollback(dao, stage)

            if not isinstance(error, Exception):
                # Cancellation and interpreter exits pass through untouched
                raise

            if committed:
                self._logger.error(error)
                raise

            self._log.warning(
                "execution_failed",
                stage=stage.value,
                error=f"{type(error).__name__}: {error}"[:200],
                duration_ms=since(start),
            )
            wrapped = wrap_error(error, f"Failed to execute {self._name} action")
            self._logger.error(wrapped)
            if wrapped is error:
                raise
            raise wrapped from error

    # ─── Stages ───────────────────────────────────────────────────

    async def _enforce_rate_limits(
        self,
        caller: Requestor,
        credentials: Any,
        auth_required: bool,
    ) -> None:
        if not self._rate_limits.configured or self._limiter is None:
            return

        if auth_required:
            key = self._authenticator.to_owner(credentials)  # type: ignore[union-attr]
        else:
            key = caller.address
        if not key:
            self._log.debug("rate_limit_skipped_no_key")
            return

        attempts = []
        if self._rate_limits.local is not None:
            attempts.append(self._limiter.attempt(f"{key}::{self._name}", self._rate_limits.local))
        if self._rate_limits.global_ is not None:
            attempts.append(self._limiter.attempt(key, self._rate_limits.global_))
        await asyncio.gather(*attempts)

    def _apply_defaults(self, inputs: Any) -> Any:
        if not self._defaults:
            return inputs
        if inputs is None:
            return dict(self._defaults)
        if isinstance(inputs, Mapping):
            return {**self._defaults, **inputs}
        return inputs

    async def _run_deferred(self, context: ActionContext) -> BaseException | None:
        """
        Run every deferred action concurrently and wait for all of them.

        Returns the first failure in registration order. It is raised only
        after invalidation and delivery, since the transaction is durable.
        """
        deferred = context.deferred
        if not deferred:
            return None

        results = await asyncio.gather(
            *(entry.action(context, entry.inputs) for entry in deferred),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            if len(failures) > 1:
                self._log.warning("deferred_actions_failed", count=len(failures))
            return failures[0]
        return None

    async def _dispatch(self, tasks: Sequence[Task]) -> None:
        if not tasks or self._dispatcher is None:
            return
        await asyncio.gather(
            *(
                self._dispatcher.send(task.queue, task.payload, delay=task.delay, ttl=task.ttl)
                for task in tasks
            )
        )

    async def _notify(self, notices: Sequence[Notice]) -> None:
        if not notices or self._notifier is None:
            return
        await self._notifier.send(list(notices))

    async def _rollback(self, dao: Dao, stage: ExecutionStage) -> None:
        """Close a still-open Dao without committing. Never masks the original error."""
        try:
            await dao.close(CloseAction.ROLLBACK if dao.in_transaction else None)
        except Exception as exc:
            self._log.error(
                "rollback_failed",
                stage=stage.value,
                error=str(exc),
            )

    def __repr__(self) -> str:
        return (
            f"<Executor action={self._name!r} "
            f"adapter={self._adapter is not None} "
            f"rate_limited={self._rate_limits.configured}>"
        )


def _as_requestor(requestor: Requestor | AuthInputs | Mapping[str, Any] | str | None) -> Requestor:
    if requestor is None:
        return Requestor()
    if isinstance(requestor, Requestor):
        return requestor
    if isinstance(requestor, str):
        return Requestor(address=requestor)
    if isinstance(requestor, AuthInputs):
        return Requestor(auth=requestor)
    return Requestor.model_validate(requestor)
