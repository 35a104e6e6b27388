"""
ZKP verification components.

This module provides replay protection, batch verification and the Groth16
location-proof verifier with its admin-gated key management.

Proofs are attacker-supplied. Every problem with a proof (bad encoding,
wrong input count, binding mismatch, failed pairing, replay) is reported as
a ``VerificationResult`` status and a ``False`` answer. Only authorization
failures on key management and static resource caps raise.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from ...core.types import Principal, ensure_principal
from ...errors.exceptions import (
    AuthorizationError,
    ValidationError,
    create_resource_error,
)
from ...logging import LogContext, get_logger
from ...storage.timed_store import LedgerStore, TimedStore
from ..hashing import Hash
from .core import (
    Proof,
    PublicBindingSpec,
    VerificationKey,
    VerificationResult,
    ZKPConfig,
    ZKPStatus,
)
from .curve import MalformedPointError, is_scalar
from .groth16 import (
    PreparedVerificationKey,
    decode_proof_points,
    prepare_verification_key,
    verify_groth16,
)

logger = get_logger(__name__)

_ADMIN_KEY = "verifier_admin"
_VK_KEY = "verification_key"
_VK_HASH_KEY = "verification_key_hash"

BatchItem = Tuple[Proof, PublicBindingSpec]


class ReplayGuard:
    """At-most-once acceptance of proof identifiers.

    Records live for ``retention`` ledgers. Past that horizon they may be
    pruned; the proving system binds each proof to a freshness nonce checked
    upstream, so no valid proof can reference a nonce older than the horizon.
    """

    def __init__(self, records: TimedStore[str, int], retention: int):
        if retention <= 0:
            raise ValidationError("Replay retention must be positive", field="retention", value=retention)
        self._records = records
        self.retention = retention

    @staticmethod
    def _key(proof_id: Union[Hash, str]) -> str:
        return proof_id.to_hex() if isinstance(proof_id, Hash) else proof_id

    def contains(self, proof_id: Union[Hash, str]) -> bool:
        return self._records.contains(self._key(proof_id))

    def check_and_record(self, proof_id: Union[Hash, str], now: int) -> bool:
        """Record ``proof_id`` if unseen. Returns True iff it was fresh."""
        key = self._key(proof_id)
        if self._records.contains(key):
            return False
        self._records.put_with_expiry(key, now, self.retention)
        return True

    def recorded_at(self, proof_id: Union[Hash, str]) -> Optional[int]:
        return self._records.get(self._key(proof_id))

    def prune(self) -> int:
        """Drop records older than the retention horizon."""
        removed = self._records.purge_expired()
        if removed:
            logger.debug(f"Pruned {removed} expired replay records")
        return removed

    def prune_before(self, before: int, now: int) -> int:
        """Drop records first accepted before ``before``.

        ``before`` must lie at or behind the retention horizon, so a record
        still inside the horizon can never be removed.
        """
        if before <= 0:
            raise ValidationError("before must be positive", field="before", value=before)
        if before >= now:
            raise ValidationError(
                "before must be less than the current sequence",
                field="before",
                value=before,
                expected=f"< {now}",
            )
        horizon = now - self.retention
        if before > horizon:
            raise ValidationError(
                "before lies inside the retention horizon",
                field="before",
                value=before,
                expected=f"<= {horizon}",
            )

        stale = [key for key, recorded in self._records.items() if recorded < before]
        for key in stale:
            self._records.remove(key)
        return len(stale) + self.prune()

    def get_stats(self) -> Dict[str, Any]:
        return {"recorded_proofs": len(self._records), "retention": self.retention}


class BatchVerifier:
    """Sequential batch verifier with a hard cap on items per call.

    Items are verified in order, so a proof repeated inside one batch is
    accepted at its first position and rejected as a replay afterwards.
    """

    def __init__(self, max_batch_size: int = 100):
        self.max_batch_size = max_batch_size

    def verify_batch(
        self,
        verify_func: Callable[[Any, Any], VerificationResult],
        items: Sequence[Any],
    ) -> List[VerificationResult]:
        if len(items) > self.max_batch_size:
            raise create_resource_error("batch size", self.max_batch_size, len(items))

        results = []
        for item in items:
            if not isinstance(item, (tuple, list)) or len(item) != 2:
                results.append(
                    VerificationResult.rejected(
                        ZKPStatus.MALFORMED_DATA, "batch item must be a (proof, binding) pair"
                    )
                )
                continue
            proof, binding = item
            results.append(verify_func(proof, binding))
        return results


class ProofVerifier:
    """Groth16 location-proof verifier.

    Owns the verification key and the replay records. Decoding of the key is
    done once at publication; each verification decodes only the proof.
    """

    def __init__(
        self,
        store: LedgerStore,
        admin: Principal,
        config: Optional[ZKPConfig] = None,
        replay_guard: Optional[ReplayGuard] = None,
    ):
        self.store = store
        self.config = config or ZKPConfig()
        self.replay_guard = replay_guard or ReplayGuard(store.proof_ids, self.config.replay_retention)
        self._batch_verifier = BatchVerifier(self.config.max_batch_size)
        self._prepared: Optional[Tuple[str, PreparedVerificationKey]] = None
        self.store.instance.put(_ADMIN_KEY, ensure_principal("admin", admin))

    # Administration

    @property
    def admin(self) -> Principal:
        return self.store.instance.get(_ADMIN_KEY)

    def _require_admin(self, caller: Principal, operation: str) -> None:
        if caller != self.admin:
            logger.warning(
                f"Rejected {operation}: caller is not the verifier admin",
                context=LogContext(component="verifier", operation=operation, caller=caller),
            )
            raise AuthorizationError(
                f"Only the verifier admin may {operation}",
                caller=caller,
                required="verifier_admin",
            )

    def set_admin(self, caller: Principal, new_admin: Principal) -> None:
        self._require_admin(caller, "set_admin")
        self.store.instance.put(_ADMIN_KEY, ensure_principal("new_admin", new_admin))
        logger.info(
            "Verifier admin replaced",
            context=LogContext(component="verifier", operation="set_admin", caller=caller),
        )

    def set_verification_key(self, caller: Principal, vk: VerificationKey) -> Hash:
        """Publish or replace the verification key. Returns its hash."""
        self._require_admin(caller, "set_verification_key")

        if not vk.ic:
            raise ValidationError("Verification key IC vector is empty", field="ic")
        if vk.input_count > self.config.max_public_inputs:
            raise create_resource_error(
                "verification key input count", self.config.max_public_inputs, vk.input_count
            )
        try:
            prepared = prepare_verification_key(vk)
        except MalformedPointError as e:
            raise ValidationError(f"Invalid verification key: {e}", field="verification_key", cause=e)

        vk_hash = vk.get_hash()
        self.store.instance.put(_VK_KEY, vk)
        self.store.instance.put(_VK_HASH_KEY, vk_hash)
        self._prepared = (vk_hash.to_hex(), prepared)
        logger.info(
            f"Verification key published ({vk.input_count} public inputs)",
            context=LogContext(
                component="verifier",
                operation="set_verification_key",
                caller=caller,
                metadata={"vk_hash": vk_hash.to_hex()},
            ),
        )
        return vk_hash

    def clear_verification_key(self, caller: Principal) -> None:
        self._require_admin(caller, "clear_verification_key")
        self.store.instance.remove(_VK_KEY)
        self.store.instance.remove(_VK_HASH_KEY)
        self._prepared = None
        logger.info(
            "Verification key cleared",
            context=LogContext(component="verifier", operation="clear_verification_key", caller=caller),
        )

    def get_verification_key(self) -> Optional[VerificationKey]:
        return self.store.instance.get(_VK_KEY)

    def get_verification_key_hash(self) -> Optional[Hash]:
        return self.store.instance.get(_VK_HASH_KEY)

    def prune_replay_records(self, caller: Principal, before: int) -> int:
        self._require_admin(caller, "prune_replay_records")
        removed = self.replay_guard.prune_before(before, self.store.clock.now())
        logger.info(
            f"Pruned {removed} replay records before sequence {before}",
            context=LogContext(component="verifier", operation="prune_replay_records", caller=caller),
        )
        return removed

    def _load_prepared_key(self) -> Optional[PreparedVerificationKey]:
        vk = self.get_verification_key()
        vk_hash = self.get_verification_key_hash()
        if vk is None or vk_hash is None:
            return None
        if self._prepared is None or self._prepared[0] != vk_hash.to_hex():
            self._prepared = (vk_hash.to_hex(), prepare_verification_key(vk))
        return self._prepared[1]

    # Verification

    def binding_for(self, cell_id: int) -> PublicBindingSpec:
        """Binding that ties a proof to a plaintext cell claim."""
        if self.config.enforce_grid_bounds:
            return PublicBindingSpec(
                expected_cell_id=cell_id,
                min_grid_size=self.config.min_grid_size,
                max_grid_size=self.config.max_grid_size,
                max_cell_id=self.config.max_cell_id,
            )
        return PublicBindingSpec(expected_cell_id=cell_id, max_cell_id=self.config.max_cell_id)

    def _evaluate(self, proof: Any, binding: Any) -> VerificationResult:
        if not isinstance(proof, Proof) or not isinstance(binding, PublicBindingSpec):
            return VerificationResult.rejected(ZKPStatus.MALFORMED_DATA, "expected a Proof and a PublicBindingSpec")

        inputs = proof.public_inputs
        if not isinstance(inputs, (list, tuple)):
            return VerificationResult.rejected(ZKPStatus.MALFORMED_DATA, "public inputs must be a sequence")
        if len(inputs) > self.config.max_public_inputs:
            return VerificationResult.rejected(
                ZKPStatus.RESOURCE_EXCEEDED,
                f"{len(inputs)} public inputs exceed the limit of {self.config.max_public_inputs}",
            )
        if not all(is_scalar(value) for value in inputs):
            return VerificationResult.rejected(ZKPStatus.MALFORMED_DATA, "public input is not a field element")

        mismatch = binding.check(list(inputs))
        if mismatch is not None:
            return VerificationResult.rejected(ZKPStatus.BINDING_MISMATCH, mismatch)

        pvk = self._load_prepared_key()
        if pvk is None:
            return VerificationResult.rejected(ZKPStatus.NO_VERIFICATION_KEY, "no verification key published")
        if len(inputs) != pvk.input_count:
            return VerificationResult.rejected(
                ZKPStatus.INVALID_INPUT,
                f"expected {pvk.input_count} public inputs, got {len(inputs)}",
            )

        try:
            a, b, c = decode_proof_points(proof.a, proof.b, proof.c)
        except MalformedPointError as e:
            return VerificationResult.rejected(ZKPStatus.MALFORMED_DATA, str(e))

        proof_id = proof.proof_id().to_hex()
        if self.replay_guard.contains(proof_id):
            return VerificationResult.rejected(ZKPStatus.REPLAY_DETECTED, "proof already consumed", proof_id)

        if not verify_groth16(pvk, a, b, c, inputs):
            return VerificationResult.rejected(ZKPStatus.INVALID_PROOF, "pairing check failed", proof_id)

        if not self.replay_guard.check_and_record(proof_id, self.store.clock.now()):
            return VerificationResult.rejected(ZKPStatus.REPLAY_DETECTED, "proof already consumed", proof_id)

        return VerificationResult(status=ZKPStatus.SUCCESS, is_valid=True, proof_id=proof_id)

    def verify_detailed(self, proof: Proof, expected_binding: PublicBindingSpec) -> VerificationResult:
        """Verify one proof and report why it was rejected.

        Raises:
            ResourceBoundError: if the proof declares more public inputs than
                the static cap. Nothing is decoded or computed in that case.
        """
        result = self._evaluate(proof, expected_binding)
        if result.status == ZKPStatus.RESOURCE_EXCEEDED:
            raise create_resource_error(
                "public input count", self.config.max_public_inputs, len(proof.public_inputs)
            )
        self._log_result(result)
        return result

    def verify(self, proof: Proof, expected_binding: PublicBindingSpec) -> bool:
        return self.verify_detailed(proof, expected_binding).is_valid

    def verify_batch_detailed(self, items: Sequence[BatchItem]) -> List[VerificationResult]:
        """Verify up to ``max_batch_size`` proofs; one bad item never fails its siblings."""
        results = self._batch_verifier.verify_batch(self._evaluate, items)
        for result in results:
            self._log_result(result)
        return results

    def verify_batch(self, items: Sequence[BatchItem]) -> List[bool]:
        return [result.is_valid for result in self.verify_batch_detailed(items)]

    def _log_result(self, result: VerificationResult) -> None:
        context = LogContext(
            component="verifier",
            operation="verify",
            sequence=self.store.clock.now(),
            metadata={"proof_id": result.proof_id} if result.proof_id else {},
        )
        if result.is_valid:
            logger.debug("Proof accepted", context=context)
        else:
            logger.info(
                f"Proof rejected ({result.status.name}): {result.error_message}",
                context=context,
            )

    def get_stats(self) -> Dict[str, Any]:
        vk = self.get_verification_key()
        return {
            "verification_key_set": vk is not None,
            "input_count": vk.input_count if vk is not None else None,
            "max_public_inputs": self.config.max_public_inputs,
            "max_batch_size": self.config.max_batch_size,
            **self.replay_guard.get_stats(),
        }
