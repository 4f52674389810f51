"""Per-slice extraction with bounded failover across a credential pool."""

from concurrent.futures import ThreadPoolExecutor

from sliceflow.callback import CompositeCallback, ProcessingStats, SliceFlowCallback
from sliceflow.client import ExtractionClient, parse_records
from sliceflow.core import AttemptResult, DispatchOutcome, Retryable, SliceChunk, Success
from sliceflow.credentials import CredentialPool


class ResilientDispatcher:
    """Runs every chunk through the extraction client.

    Each chunk tries at most one attempt per key in the pool, starting at
    key ``chunk.index % K`` and moving to the next key after each failure.
    A chunk that fails on every key yields an exhausted outcome with no
    records; the remaining chunks are still processed.

    Parameters
    ----------
    client : ExtractionClient
        Object with ``extract(chunk, credential) -> str``
    max_workers : int, default=4
        Number of chunks dispatched concurrently. 1 runs in the caller's thread.
    """

    def __init__(self, client: ExtractionClient, max_workers: int = 4) -> None:
        if not callable(getattr(client, "extract", None)):
            raise TypeError("client must provide an extract(chunk, credential) method")
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.client = client
        self.max_workers = max_workers

    def attempt(self, chunk: SliceChunk, credential: str) -> AttemptResult:
        """Single call to the service, folded into Success or Retryable."""
        try:
            raw = self.client.extract(chunk, credential)
            return Success(records=tuple(parse_records(raw)))
        except Exception as e:
            return Retryable(error=e)

    def process_one(
        self,
        chunk: SliceChunk,
        pool: CredentialPool,
        callback: SliceFlowCallback | None = None,
    ) -> DispatchOutcome:
        """Failover loop for one chunk: Pending -> Succeeded | Exhausted."""
        callback = callback or SliceFlowCallback()
        errors: list[str] = []

        for attempt in range(len(pool)):
            key_index = pool.select(chunk.index, attempt)
            result = self.attempt(chunk, pool[key_index])
            if isinstance(result, Success):
                return DispatchOutcome.succeeded(
                    index=chunk.index,
                    records=result.records,
                    attempts=attempt + 1,
                    credential_index=key_index,
                    errors=tuple(errors),
                )
            errors.append(f"{type(result.error).__name__}: {result.error}")
            callback.on_attempt_failed(chunk, attempt, pool.mask(key_index), result.error)

        outcome = DispatchOutcome.exhausted(
            index=chunk.index, attempts=len(pool), errors=tuple(errors)
        )
        callback.on_slice_failed(outcome)
        return outcome

    def _run_chunk(
        self,
        chunk: SliceChunk,
        pool: CredentialPool,
        callback: SliceFlowCallback,
        stats: ProcessingStats,
        total: int,
    ) -> DispatchOutcome:
        callback.on_slice_start(chunk, total)
        outcome = self.process_one(chunk, pool, callback)
        stats.record_outcome(outcome)
        callback.on_slice_end(outcome, total)
        return outcome

    def process_all(
        self,
        chunks: list[SliceChunk],
        pool: CredentialPool,
        callbacks: list[SliceFlowCallback] | None = None,
        stats: ProcessingStats | None = None,
    ) -> list[DispatchOutcome]:
        """Dispatch every chunk and return outcomes in chunk order.

        Parameters
        ----------
        chunks : list[SliceChunk]
            Chunks to process. ``chunk.index`` drives key rotation.
        pool : CredentialPool
            Shared keys, read only.
        callbacks : list[SliceFlowCallback], optional
            Receivers for slice and failover events.
        stats : ProcessingStats, optional
            Updated as outcomes complete.

        Returns
        -------
        list[DispatchOutcome]
            ``outcomes[i]`` belongs to ``chunks[i]`` whatever the completion order.
        """
        callback = CompositeCallback(callbacks or [])
        stats = stats or ProcessingStats()
        stats.total_slices = len(chunks)
        total = len(chunks)

        outcomes: list[DispatchOutcome | None] = [None] * total
        if self.max_workers == 1 or total <= 1:
            for position, chunk in enumerate(chunks):
                outcomes[position] = self._run_chunk(chunk, pool, callback, stats, total)
        else:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, total)) as executor:
                futures = [
                    executor.submit(self._run_chunk, chunk, pool, callback, stats, total)
                    for chunk in chunks
                ]
                for position, future in enumerate(futures):
                    outcomes[position] = future.result()
        return outcomes
