"""
Conversion Coordinator

Replaces an offseason certificate with a winter one. The credit service has
no way to change a balance, so conversion is a delete followed by a create:

    PENDING -> DELETED -> CREATED
                       -> PARTIAL_FAILURE   (old certificate gone, no replacement)

Neither upstream call is retried. A create failure after a successful delete
is reported as PartialFailure with everything needed to replay the create.
"""

import logging
import threading
from contextlib import contextmanager

from .acuity import AcuityApiError, AcuityClient, AcuityConnectionError
from .calculators import BalanceCalculator
from .errors import ConversionInProgress, InvalidBalance, PartialFailure, UpstreamUnavailable
from .models import ConversionRequest, ConversionResult, ReplacementRecord, ReplacementState

logger = logging.getLogger(__name__)


class CodeLeases:
    """One lock per certificate code, held across the whole delete/create pair."""

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout
        # code -> [lock, number of holders and waiters]
        self._locks = {}
        self._guard = threading.Lock()

    def _checkout(self, code: str) -> threading.Lock:
        with self._guard:
            entry = self._locks.setdefault(code, [threading.Lock(), 0])
            entry[1] += 1
            return entry[0]

    def _checkin(self, code: str) -> None:
        with self._guard:
            entry = self._locks[code]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[code]

    @contextmanager
    def hold(self, code: str):
        lock = self._checkout(code)
        try:
            if not lock.acquire(timeout=self.timeout):
                raise ConversionInProgress(f"A conversion for certificate {code} is already in progress")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(code)

    def is_held(self, code: str) -> bool:
        with self._guard:
            entry = self._locks.get(code)
        return entry is not None and entry[0].locked()


class ConversionCoordinator:
    """Runs the two-step replace for a conversion request."""

    def __init__(
        self,
        client: AcuityClient,
        winter_product_ids: dict,
        winter_type_id: str,
        leases: CodeLeases | None = None,
        calculator: BalanceCalculator | None = None,
    ):
        self.client = client
        self.winter_product_ids = dict(winter_product_ids)
        self.winter_type_id = str(winter_type_id)
        self.leases = leases or CodeLeases()
        self.calculator = calculator or BalanceCalculator()

    def convert(self, request: ConversionRequest) -> ConversionResult:
        """Convert a certificate, raising a ConversionError on any failure."""
        record = self.attempt(request)
        return self._finish(record)

    def attempt(self, request: ConversionRequest) -> ReplacementRecord:
        """
        Run the replacement and return its final record.

        Upstream failures are captured in the record's state rather than raised.
        ConversionInProgress is raised when the code's lease is busy.
        """
        final_balance = self.calculator.final_balance(request)
        record = ReplacementRecord(
            code=request.code,
            external_id=request.external_id,
            email=request.email,
            final_balance=final_balance,
        )

        # Step 2: target product. Nothing has been mutated yet.
        record.target_product_id = self.winter_product_ids.get(final_balance)
        if final_balance < 1 or record.target_product_id is None:
            record.reject(f"No product ID found for {final_balance} sessions")
            return record

        with self.leases.hold(request.code):
            logger.info(
                f"Converting {request.code} ({request.conversion_type.value}): "
                f"{final_balance} winter sessions, product {record.target_product_id}"
            )

            # Step 3: delete the existing certificate.
            try:
                self.client.delete_certificate(request.external_id)
            except (AcuityApiError, AcuityConnectionError) as e:
                logger.error(f"Delete failed for {request.code} (id={request.external_id}): {e}")
                record.delete_failed(f"Failed to delete certificate: {e}")
                return record
            record.deleted()

            # Step 4: create the replacement.
            self._create(record)

        return record

    def replay(self, record: ReplacementRecord) -> ConversionResult:
        """Re-run only the create step of a partially failed replacement."""
        if record.state != ReplacementState.PARTIAL_FAILURE:
            raise ValueError(f"Only partial failures can be replayed, got: {record.state.value}")

        with self.leases.hold(record.code):
            logger.warning(f"Replaying certificate creation: {record.remediation()}")
            self._create(record)

        return self._finish(record)

    def _create(self, record: ReplacementRecord) -> None:
        try:
            data = self.client.create_certificate(record.code, record.target_product_id, record.email)
            counts = data.get("remainingCounts") or {}
            winter_balance = int(counts.get(self.winter_type_id, 0) or 0)
        except (AcuityApiError, AcuityConnectionError, AttributeError, TypeError, ValueError) as e:
            record.partial_failure(f"Failed to create certificate: {e}")
            logger.critical(f"PARTIAL FAILURE - certificate deleted but not recreated: {record.remediation()}")
            return

        record.created(winter_balance)
        logger.info(f"Converted {record.code}: {record.winter_balance} winter sessions")

    def _finish(self, record: ReplacementRecord) -> ConversionResult:
        if record.state == ReplacementState.CREATED:
            return ConversionResult(
                code=record.code,
                final_balance=record.winter_balance,
                product_id=record.target_product_id,
            )
        if record.state == ReplacementState.REJECTED:
            raise InvalidBalance(record.error, context=record.remediation())
        if record.state == ReplacementState.DELETE_FAILED:
            raise UpstreamUnavailable(record.error, error_code="conversion_failed", context=record.remediation())
        if record.state == ReplacementState.PARTIAL_FAILURE:
            raise PartialFailure(
                "Your certificate was removed but the replacement could not be created. "
                "Support has the details needed to restore it.",
                record,
            )
        raise ValueError(f"Replacement ended in unexpected state: {record.state.value}")
