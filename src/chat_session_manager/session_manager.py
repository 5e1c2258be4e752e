# src/chat_session_manager/session_manager.py
"""
ChatSession - high-level API for chatting with a completion endpoint.

This module provides the ChatSession class which offers:
- A bounded transcript trimmed by token or message budget
- Context-window safety trimming per model
- Retries with capped exponential backoff and jitter
- Optional moderation of prompts and replies
- Blocking and streaming exchanges
- Token consumption tracking
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator, Awaitable, Iterable
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeVar

from chat_session_manager.capabilities import CompletionBackend, ModerationBackend, Tokenizer
from chat_session_manager.exceptions import (
    ChatSessionError,
    ConfigurationError,
    ModelOutputRejected,
    ModerationStage,
    StreamTransportError,
    TransientTransportError,
    UserInputRejected,
)
from chat_session_manager.model_registry import lookup_model
from chat_session_manager.models.client_config import ClientConfig, SessionSettings
from chat_session_manager.models.completion_request import CompletionRequest
from chat_session_manager.models.message import Message
from chat_session_manager.models.message_role import MessageRole
from chat_session_manager.models.model_spec import ModelSpec
from chat_session_manager.models.session_stats import SessionStats
from chat_session_manager.retry import RetryController
from chat_session_manager.streaming import ChunkStream
from chat_session_manager.token_accountant import TokenAccountant
from chat_session_manager.transcript import Transcript

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ExchangeState(str, Enum):
    """Where the current (or last) exchange of a session is."""

    IDLE = "idle"
    MODERATING_INPUT = "moderating_input"
    SENDING = "sending"
    RETRYING = "retrying"
    MODERATING_OUTPUT = "moderating_output"
    COMMITTED = "committed"
    FAILED = "failed"


class ChatSession:
    """
    One conversation with a completion model.

    A session is not safe for concurrent exchanges: serialize calls to
    ``prompt``/``prompt_stream`` or ``clone()`` the session per caller.
    Only ``total_consumed_tokens()`` may be called from other threads.

    Examples:
        Basic usage:
        ```python
        session = ChatSession.create(ClientConfig(api_key="sk-..."))
        session.set_instruction("You are a helpful assistant.")
        reply = await session.prompt("Hello!")
        ```

        Streaming:
        ```python
        stream = await session.prompt_stream("Tell me a story")
        async for item in stream:
            if item.error:
                raise item.error
            print(item.chunk, end="")
        ```
    """

    def __init__(
        self,
        backend: CompletionBackend,
        tokenizer: Tokenizer,
        moderator: ModerationBackend | None = None,
        settings: SessionSettings | None = None,
        session_id: str | None = None,
    ):
        """
        Initialize a ChatSession.

        Args:
            backend: Remote completion capability.
            tokenizer: Token counting capability, shared with clones.
            moderator: Moderation capability; required when moderation is enabled.
            settings: Resolved session settings. Defaults are used if omitted.
            session_id: Optional session ID. If not provided, a new one is generated.

        Raises:
            ModelNotFound: the configured model is not in the registry.
            ConfigurationError: moderation is enabled without a moderator.
        """
        self._settings = settings or SessionSettings()
        # fail fast on unknown models
        lookup_model(self._settings.model)
        if (self._settings.moderate_input or self._settings.moderate_output) and moderator is None:
            raise ConfigurationError("Moderation is enabled but no moderation backend was given")

        self._session_id = session_id or str(uuid.uuid4())
        self._backend = backend
        self._moderator = moderator
        self._tokenizer = tokenizer

        self._transcript = Transcript(tokenizer)
        self._accountant = TokenAccountant(tokenizer)
        self._retry = RetryController(self._settings.retry, retry_on=(TransientTransportError,))

        self._state = ExchangeState.IDLE
        self._exchanges = 0
        self._failed_exchanges = 0
        self._created_at = datetime.now(timezone.utc)
        self._last_update = self._created_at

    @classmethod
    def create(cls, config: ClientConfig | None = None, tokenizer: Tokenizer | None = None) -> ChatSession:
        """
        Build a session talking to OpenAI with a tiktoken tokenizer.

        Raises:
            ConfigurationError: no API key, or an unknown model.
        """
        from chat_session_manager.providers.openai_provider import (
            OpenAICompletionBackend,
            OpenAIModerationBackend,
            create_openai_client,
        )
        from chat_session_manager.tokenizer import TiktokenTokenizer

        config = config or ClientConfig()
        settings = SessionSettings.from_config(config)
        lookup_model(settings.model)

        client = create_openai_client(api_key=config.api_key, base_url=config.api_url)
        session = cls(
            backend=OpenAICompletionBackend(client),
            moderator=OpenAIModerationBackend(client),
            tokenizer=tokenizer or TiktokenTokenizer.for_model(settings.model),
            settings=settings,
        )
        logger.info(f"Created chat session {session.session_id} for model {settings.model}")
        return session

    # ------------------------------------------------------------------ #
    # Properties
    # ------------------------------------------------------------------ #

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def settings(self) -> SessionSettings:
        return self._settings

    @property
    def model(self) -> ModelSpec:
        """Spec of the configured model, looked up on every access."""
        return lookup_model(self._settings.model)

    @property
    def state(self) -> ExchangeState:
        return self._state

    @property
    def instruction(self) -> str | None:
        return self._transcript.instruction

    def __repr__(self) -> str:
        return f"ChatSession(id={self._session_id!r}, model={self._settings.model!r}, messages={len(self._transcript)})"

    # ------------------------------------------------------------------ #
    # Cloning
    # ------------------------------------------------------------------ #

    def clone(self) -> ChatSession:
        """New session sharing backends and settings, with an empty history."""
        return self._clone_with_settings(self._settings)

    def clone_with_overrides(self, config: ClientConfig) -> ChatSession:
        """
        Clone, overriding the settings given in ``config``.

        Credentials in ``config`` are ignored: clones share the source
        session's backends.
        """
        return self._clone_with_settings(self._settings.merged(config))

    def _clone_with_settings(self, settings: SessionSettings) -> ChatSession:
        clone = ChatSession(
            backend=self._backend,
            tokenizer=self._tokenizer,
            moderator=self._moderator,
            settings=settings,
        )
        logger.info(f"Cloned session {self._session_id} -> {clone.session_id}")
        return clone

    # ------------------------------------------------------------------ #
    # History
    # ------------------------------------------------------------------ #

    def set_instruction(self, instruction: str) -> None:
        """
        Set or replace the system message.

        Raises:
            InstructionTooLong: the instruction exceeds the model's limit.
        """
        self._transcript.set_instruction(instruction, model=self.model)
        self._touch()

    def set_instruction_with_truncation(self, instruction: str) -> str:
        """Set or replace the system message, truncating it to fit. Returns the stored text."""
        stored = self._transcript.set_instruction_with_truncation(instruction, self.model)
        if len(stored) < len(instruction):
            logger.info(f"Instruction truncated from {len(instruction)} to {len(stored)} characters")
        self._touch()
        return stored

    def import_history(self, messages: Iterable[Message | dict[str, Any]]) -> None:
        """Append ``messages`` to the history and trim it."""
        self._transcript.import_messages(messages, self._settings.budget, self.model)
        self._touch()

    def export_history(self, include_system: bool = True) -> list[Message]:
        """Copy of the current history."""
        return self._transcript.export(include_system=include_system)

    def total_consumed_tokens(self) -> int:
        """Total input and output tokens billed by this session."""
        return self._accountant.total

    def get_stats(self) -> SessionStats:
        messages = self._transcript.export(include_system=False)
        return SessionStats(
            session_id=self._session_id,
            model=self._settings.model,
            has_instruction=self._transcript.has_instruction,
            total_messages=len(messages),
            user_messages=sum(1 for m in messages if m.role == MessageRole.USER),
            assistant_messages=sum(1 for m in messages if m.role == MessageRole.ASSISTANT),
            transcript_tokens=self._transcript.count_tokens(),
            total_tokens=self.total_consumed_tokens(),
            exchanges=self._exchanges,
            failed_exchanges=self._failed_exchanges,
            created_at=self._created_at.isoformat(),
            last_update=self._last_update.isoformat(),
        )

    # ------------------------------------------------------------------ #
    # Exchanges
    # ------------------------------------------------------------------ #

    async def prompt(self, prompt: str) -> str:
        """
        Send ``prompt`` and return the model's reply.

        Raises:
            UserInputRejected: input moderation flagged the prompt. The prompt
                is not added to the history.
            ModelOutputRejected: output moderation flagged the reply. The
                reply is not added to the history.
            TransientTransportError: every attempt failed.
        """
        self._set_state(ExchangeState.IDLE)
        try:
            if self._settings.moderate_input:
                await self._moderate(prompt, ModerationStage.INPUT)

            request = self._prepare_request(prompt, stream=False)
            reply = await self._retry.run(
                lambda: self._attempt(self._backend.complete(request)),
                on_retry=self._on_retry,
            )

            if self._settings.moderate_output and reply:
                await self._moderate(reply, ModerationStage.OUTPUT)
        except BaseException:
            self._fail()
            raise

        self._commit(reply)
        return reply

    async def prompt_stream(self, prompt: str) -> ChunkStream:
        """
        Send ``prompt`` and stream the reply.

        The exchange runs in a background task. Every item of the returned
        stream carries a text chunk or an error; the stream closes after the
        reply was committed to the history (or after the error). Output
        moderation is not applied to streamed replies.
        """
        stream = ChunkStream(maxsize=self._settings.stream_buffer_size)
        task = asyncio.create_task(self._run_stream(prompt, stream))
        stream.attach(task)
        return stream

    async def _run_stream(self, prompt: str, stream: ChunkStream) -> None:
        self._set_state(ExchangeState.IDLE)
        try:
            reply = await self._stream_exchange(prompt, stream)
        except asyncio.CancelledError:
            self._fail()
            raise
        except Exception as exc:
            self._fail()
            logger.warning(f"Streaming exchange failed: {exc}")
            stream.fail(exc)
        else:
            self._commit(reply)
        stream.close()

    async def _stream_exchange(self, prompt: str, stream: ChunkStream) -> str:
        if self._settings.moderate_input:
            await self._moderate(prompt, ModerationStage.INPUT)

        request = self._prepare_request(prompt, stream=True)
        upstream = await self._retry.run(
            lambda: self._attempt(self._backend.stream(request)),
            on_retry=self._on_retry,
        )
        return await self._pump(upstream, stream)

    async def _pump(self, upstream: AsyncIterator[str], stream: ChunkStream) -> str:
        """
        Forward every upstream chunk and return the accumulated text.

        ``api_timeout`` bounds the time spent waiting on the upstream only;
        time the consumer takes to accept chunks does not count against it.
        """
        timeout = self._settings.api_timeout
        remaining = timeout
        loop = asyncio.get_running_loop()
        chunks = upstream.__aiter__()
        buffer: list[str] = []
        try:
            while True:
                started = loop.time()
                try:
                    chunk = await asyncio.wait_for(chunks.__anext__(), timeout=max(remaining, 0.0))
                except StopAsyncIteration:
                    break
                except asyncio.TimeoutError as exc:
                    raise StreamTransportError(f"Stream timed out after {timeout}s") from exc
                except Exception as exc:
                    raise StreamTransportError(f"Stream failed: {exc}") from exc
                remaining -= loop.time() - started

                buffer.append(chunk)
                await stream.forward(chunk, self._settings.forward_timeout)
        finally:
            aclose = getattr(upstream, "aclose", None)
            if aclose is not None:
                await aclose()
        return "".join(buffer)

    # ------------------------------------------------------------------ #
    # Exchange steps
    # ------------------------------------------------------------------ #

    async def _moderate(self, text: str, stage: ModerationStage) -> None:
        assert self._moderator is not None
        self._set_state(
            ExchangeState.MODERATING_INPUT if stage == ModerationStage.INPUT else ExchangeState.MODERATING_OUTPUT
        )
        if await self._moderator.moderate(text):
            logger.info(f"Moderation rejected {stage.value} of session {self._session_id}")
            if stage == ModerationStage.INPUT:
                raise UserInputRejected()
            raise ModelOutputRejected()

    def _prepare_request(self, prompt: str, stream: bool) -> CompletionRequest:
        """Append the user message, trim and snapshot the history into a request."""
        self._set_state(ExchangeState.SENDING)
        model = self.model
        self._transcript.append_user(prompt)
        self._transcript.trim(self._settings.budget, model)
        self._touch()
        return CompletionRequest(
            model=self._settings.model,
            messages=[m.to_dict() for m in self._transcript],
            stream=stream,
            temperature=self._settings.temperature,
            extra_params=self._settings.extra_params,
        )

    async def _attempt(self, call: Awaitable[T]) -> T:
        """Run one remote call under the API timeout, mapping failures to transient errors."""
        timeout = self._settings.api_timeout
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise TransientTransportError(f"Chat completion timed out after {timeout}s") from exc
        except ChatSessionError:
            raise
        except Exception as exc:
            raise TransientTransportError(f"Failed to create chat completion: {exc}") from exc

    def _on_retry(self, attempt: int, exc: BaseException) -> None:
        self._set_state(ExchangeState.RETRYING)
        logger.warning(f"Retrying chat completion (attempt {attempt + 1}/{self._retry.max_attempts} failed): {exc}")

    def _commit(self, reply: str) -> None:
        """Record a successful reply and bill the transcript."""
        self._exchanges += 1
        self._set_state(ExchangeState.COMMITTED)
        if not reply:
            logger.debug("Empty reply, nothing to commit")
            return

        if self._settings.budget.memorize_assistant_replies:
            self._transcript.append_assistant(reply)
        self._accountant.bill(self._transcript.messages, self.model.family)
        self._touch()

    def _fail(self) -> None:
        self._failed_exchanges += 1
        self._set_state(ExchangeState.FAILED)

    def _set_state(self, state: ExchangeState) -> None:
        if state != self._state:
            logger.debug(f"Session {self._session_id}: {self._state.value} -> {state.value}")
        self._state = state

    def _touch(self) -> None:
        self._last_update = datetime.now(timezone.utc)
