# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Topic provisioner: make sure the metrics topic exists with the right shape.

State machine::

    IDLE -> CHECKING -> PROVISIONED                       (topic already there)
    CHECKING -> CREATING -> VERIFYING -> PROVISIONED
    CHECKING | CREATING | VERIFYING -> (backoff) -> CHECKING   (transient failure)
    any non-terminal state -> FAILED

An existing topic is accepted when it has at least the configured number of
partitions and at least the configured replicas on every partition. A topic
with fewer is never altered: the run fails with SHAPE_MISMATCH.

Two bounds apply to a run and the first one hit ends it:
    - max_attempts: total number of passes through CHECKING
      (RETRIES_EXHAUSTED)
    - creation_timeout_seconds: wall-clock deadline from the first attempt;
      every network step and every backoff sleep is bounded by what is left
      of it (TIMEOUT)

``provision()`` reports every outcome through the returned
ModelProvisioningResult and does not raise for provisioning failures.
Whether a failure aborts the host or leaves it running without metrics is
decided by ReporterLifecycle.

Usage:
    ```python
    provisioner = TopicProvisioner.from_config(config, client)
    result = await provisioner.provision(config.topic_spec())
    if not result.succeeded:
        ...
    ```
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TypeVar
from uuid import UUID, uuid4

from omnibase_metrics_reporter.broker import BrokerMetadataClient
from omnibase_metrics_reporter.enums import (
    EnumCreateTopicOutcome,
    EnumProvisioningAttemptOutcome,
    EnumProvisioningFailureReason,
    EnumProvisioningState,
)
from omnibase_metrics_reporter.errors import (
    InfraConnectionError,
    InfraTimeoutError,
    TopicCreationError,
    TopicDescriptionError,
    TopicNotFoundError,
)
from omnibase_metrics_reporter.models import (
    ModelMetricsReporterConfig,
    ModelProvisioningAttempt,
    ModelProvisioningResult,
    ModelTopicDescription,
    ModelTopicSpec,
)
from omnibase_metrics_reporter.utils import (
    compute_backoff_seconds,
    sanitize_error_message,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_INVALID_REPLICATION_FACTOR_ERROR = "InvalidReplicationFactorError"


class _TransientFailure(Exception):
    """Attempt failed; a later attempt may succeed."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class _CreatedThenTransient(_TransientFailure):
    """Verification failed transiently after this attempt created the topic."""


class _FatalFailure(Exception):
    """Attempt failed in a way retrying cannot fix."""

    def __init__(self, reason: EnumProvisioningFailureReason, detail: str) -> None:
        super().__init__(detail)
        self.reason = reason
        self.detail = detail


class TopicProvisioner:
    """Runs the provisioning state machine for one topic at a time.

    Thread Safety:
        Coroutine-safe. Concurrent ``provision()`` calls on one instance run
        one after another. Separate instances (or separate processes) may
        provision the same topic concurrently; the loser of the create race
        sees ALREADY_EXISTS and verifies like the winner.
    """

    def __init__(
        self,
        client: BrokerMetadataClient,
        auto_create: bool = True,
        creation_timeout_seconds: float = 10.0,
        max_attempts: int = 5,
        backoff_base_seconds: float = 0.1,
        backoff_max_seconds: float = 5.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the provisioner.

        Args:
            client: Broker metadata client used for every cluster call.
            auto_create: Create the topic when it is missing.
            creation_timeout_seconds: Overall deadline for a run.
            max_attempts: Maximum passes through CHECKING (>= 1).
            backoff_base_seconds: Backoff after the first failed attempt.
            backoff_max_seconds: Upper bound for any backoff.
            sleep: Awaitable sleep used between attempts.
            clock: Monotonic clock in seconds.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if creation_timeout_seconds <= 0:
            raise ValueError("creation_timeout_seconds must be > 0")
        self._client = client
        self._auto_create = auto_create
        self._timeout_seconds = creation_timeout_seconds
        self._max_attempts = max_attempts
        self._backoff_base = backoff_base_seconds
        self._backoff_max = backoff_max_seconds
        self._sleep = sleep
        self._clock = clock
        self._state = EnumProvisioningState.IDLE
        self._run_lock = asyncio.Lock()

    @classmethod
    def from_config(
        cls,
        config: ModelMetricsReporterConfig,
        client: BrokerMetadataClient | None = None,
    ) -> TopicProvisioner:
        return cls(
            client=client or BrokerMetadataClient.from_config(config),
            auto_create=config.topic_auto_create,
            creation_timeout_seconds=config.creation_timeout_seconds,
            max_attempts=config.topic_auto_create_retries,
            backoff_base_seconds=config.retry_backoff_base_ms / 1000.0,
            backoff_max_seconds=config.retry_backoff_max_ms / 1000.0,
        )

    @property
    def state(self) -> EnumProvisioningState:
        """Current state of the most recent run."""
        return self._state

    def _transition(
        self, new_state: EnumProvisioningState, topic: str, correlation_id: UUID
    ) -> None:
        logger.debug(
            "Provisioning %s: %s -> %s",
            topic,
            self._state.value,
            new_state.value,
            extra={"correlation_id": str(correlation_id), "topic": topic},
        )
        self._state = new_state

    async def provision(
        self,
        spec: ModelTopicSpec,
        correlation_id: UUID | None = None,
    ) -> ModelProvisioningResult:
        """Ensure ``spec.name`` exists with at least the requested shape.

        Args:
            spec: Topic creation spec.
            correlation_id: Optional correlation ID for tracing.

        Returns:
            Terminal result (PROVISIONED or FAILED) with every attempt made.
        """
        async with self._run_lock:
            return await self._run(spec, correlation_id or uuid4())

    async def _run(
        self, spec: ModelTopicSpec, correlation_id: UUID
    ) -> ModelProvisioningResult:
        self._state = EnumProvisioningState.IDLE
        start = self._clock()
        deadline = start + self._timeout_seconds
        attempts: list[ModelProvisioningAttempt] = []
        created = False

        def finish(
            state: EnumProvisioningState,
            reason: EnumProvisioningFailureReason | None = None,
            description: ModelTopicDescription | None = None,
        ) -> ModelProvisioningResult:
            self._transition(state, spec.name, correlation_id)
            result = ModelProvisioningResult(
                topic=spec.name,
                state=state,
                failure_reason=reason,
                attempts=tuple(attempts),
                description=description,
                created=created,
                elapsed_seconds=max(0.0, self._clock() - start),
            )
            self._log_result(result, correlation_id)
            return result

        for attempt_number in range(1, self._max_attempts + 1):
            started_at = datetime.now(UTC)
            try:
                outcome, description = await self._attempt(
                    spec, deadline, correlation_id
                )
            except _FatalFailure as fatal:
                attempts.append(
                    ModelProvisioningAttempt(
                        attempt_number=attempt_number,
                        started_at=started_at,
                        outcome=EnumProvisioningAttemptOutcome.FAILED,
                        reason=fatal.detail,
                    )
                )
                return finish(EnumProvisioningState.FAILED, fatal.reason)
            except _TransientFailure as transient:
                if isinstance(transient, _CreatedThenTransient):
                    created = True
                attempts.append(
                    ModelProvisioningAttempt(
                        attempt_number=attempt_number,
                        started_at=started_at,
                        outcome=EnumProvisioningAttemptOutcome.FAILED,
                        reason=transient.detail,
                    )
                )
                logger.info(
                    "Provisioning attempt %d/%d for %s failed: %s",
                    attempt_number,
                    self._max_attempts,
                    spec.name,
                    transient.detail,
                    extra={"correlation_id": str(correlation_id), "topic": spec.name},
                )
                if attempt_number >= self._max_attempts:
                    return finish(
                        EnumProvisioningState.FAILED,
                        EnumProvisioningFailureReason.RETRIES_EXHAUSTED,
                    )
                delay = compute_backoff_seconds(
                    attempt_number, self._backoff_base, self._backoff_max
                )
                if self._clock() + delay >= deadline:
                    return finish(
                        EnumProvisioningState.FAILED,
                        EnumProvisioningFailureReason.TIMEOUT,
                    )
                await self._sleep(delay)
                continue

            if outcome == EnumProvisioningAttemptOutcome.CREATED:
                created = True
            attempts.append(
                ModelProvisioningAttempt(
                    attempt_number=attempt_number,
                    started_at=started_at,
                    outcome=outcome,
                )
            )
            return finish(EnumProvisioningState.PROVISIONED, description=description)

        # Unreachable: the loop always returns on its last iteration.
        return finish(
            EnumProvisioningState.FAILED, EnumProvisioningFailureReason.RETRIES_EXHAUSTED
        )

    async def _bounded(
        self, step: Callable[[], Awaitable[T]], deadline: float, what: str
    ) -> T:
        """Run one network step with whatever is left of the deadline."""
        remaining = deadline - self._clock()
        if remaining <= 0:
            raise _FatalFailure(
                EnumProvisioningFailureReason.TIMEOUT,
                f"deadline elapsed before {what}",
            )
        try:
            return await asyncio.wait_for(step(), timeout=remaining)
        except TimeoutError as e:
            raise _FatalFailure(
                EnumProvisioningFailureReason.TIMEOUT,
                f"deadline elapsed during {what}",
            ) from e

    async def _describe(
        self,
        spec: ModelTopicSpec,
        deadline: float,
        correlation_id: UUID,
    ) -> ModelTopicDescription | None:
        """Describe the topic; None when the cluster reports it as unknown."""
        try:
            return await self._bounded(
                lambda: self._client.describe_topic(spec.name, correlation_id),
                deadline,
                "describe_topic",
            )
        except TopicNotFoundError:
            return None
        except TopicDescriptionError as e:
            detail = sanitize_error_message(e.cause or e)
            if not e.retriable:
                raise _FatalFailure(
                    EnumProvisioningFailureReason.BROKER_REJECTED,
                    f"describe_topic rejected: {detail}",
                ) from e
            raise _TransientFailure(f"describe_topic failed: {detail}") from e

    def _check_shape(
        self, spec: ModelTopicSpec, description: ModelTopicDescription
    ) -> None:
        if description.satisfies(spec):
            return
        if description.partition_count == 0:
            raise _TransientFailure("topic has no partition metadata yet")
        raise _FatalFailure(
            EnumProvisioningFailureReason.SHAPE_MISMATCH,
            f"topic has {description.partition_count} partition(s) with at least "
            f"{description.min_replica_count} replica(s); need "
            f"{spec.partitions} partition(s) with {spec.replication_factor} replica(s)",
        )

    async def _attempt(
        self,
        spec: ModelTopicSpec,
        deadline: float,
        correlation_id: UUID,
    ) -> tuple[EnumProvisioningAttemptOutcome, ModelTopicDescription]:
        """One pass through CHECKING and, if needed, CREATING and VERIFYING."""
        self._transition(EnumProvisioningState.CHECKING, spec.name, correlation_id)
        description = await self._describe(spec, deadline, correlation_id)
        if description is not None:
            self._check_shape(spec, description)
            return EnumProvisioningAttemptOutcome.EXISTING, description

        if not self._auto_create:
            raise _FatalFailure(
                EnumProvisioningFailureReason.TOPIC_MISSING,
                "topic does not exist and auto-creation is disabled",
            )

        self._transition(EnumProvisioningState.CREATING, spec.name, correlation_id)
        try:
            brokers = await self._bounded(
                lambda: self._client.broker_count(correlation_id),
                deadline,
                "describe_cluster",
            )
        except (InfraConnectionError, InfraTimeoutError) as e:
            raise _TransientFailure(
                f"describe_cluster failed: {sanitize_error_message(e)}"
            ) from e
        if spec.replication_factor > brokers:
            raise _FatalFailure(
                EnumProvisioningFailureReason.INVALID_REPLICATION_FACTOR,
                f"replication factor {spec.replication_factor} exceeds "
                f"broker count {brokers}",
            )

        try:
            create_outcome = await self._bounded(
                lambda: self._client.create_topic(spec, correlation_id),
                deadline,
                "create_topic",
            )
        except TopicCreationError as e:
            if e.broker_error == _INVALID_REPLICATION_FACTOR_ERROR:
                raise _FatalFailure(
                    EnumProvisioningFailureReason.INVALID_REPLICATION_FACTOR,
                    f"cluster rejected replication factor {spec.replication_factor}",
                ) from e
            if not e.retriable:
                raise _FatalFailure(
                    EnumProvisioningFailureReason.BROKER_REJECTED,
                    f"create_topic rejected: {e.broker_error}",
                ) from e
            raise _TransientFailure(f"create_topic failed: {e.broker_error}") from e
        except (InfraConnectionError, InfraTimeoutError) as e:
            raise _TransientFailure(
                f"create_topic failed: {sanitize_error_message(e)}"
            ) from e

        outcome = (
            EnumProvisioningAttemptOutcome.CREATED
            if create_outcome == EnumCreateTopicOutcome.CREATED
            else EnumProvisioningAttemptOutcome.ALREADY_EXISTS
        )

        self._transition(EnumProvisioningState.VERIFYING, spec.name, correlation_id)
        try:
            description = await self._describe(spec, deadline, correlation_id)
            if description is None:
                raise _TransientFailure("topic not yet visible after create")
            self._check_shape(spec, description)
        except _TransientFailure as e:
            if outcome == EnumProvisioningAttemptOutcome.CREATED:
                raise _CreatedThenTransient(e.detail) from e
            raise
        return outcome, description

    def _log_result(
        self, result: ModelProvisioningResult, correlation_id: UUID
    ) -> None:
        extra = {
            "correlation_id": str(correlation_id),
            "topic": result.topic,
            "attempts": len(result.attempts),
            "elapsed_seconds": round(result.elapsed_seconds, 3),
        }
        if result.succeeded:
            logger.info(
                "Topic %s provisioned (created=%s)",
                result.topic,
                result.created,
                extra=extra,
            )
        else:
            logger.warning(
                "Provisioning of topic %s failed: %s",
                result.topic,
                result.failure_reason.value if result.failure_reason else "unknown",
                extra=extra,
            )


__all__ = ["TopicProvisioner"]
