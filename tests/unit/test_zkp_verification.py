"""
Unit tests for ZKP verification components.

Pairing checks are slow in pure Python, so tests that need an accepted
proof share one trapdoor setup and keep the number of pairings small.
"""

import logging

logger = logging.getLogger(__name__)

import pytest
from py_ecc import optimized_bn128 as bn128

from geotrust.crypto.hashing import Hash
from geotrust.crypto.zkp import (
    BatchVerifier,
    Proof,
    ProofVerifier,
    PublicBindingSpec,
    ReplayGuard,
    VerificationKey,
    VerificationResult,
    ZKPConfig,
    ZKPStatus,
    encode_g1,
    encode_g2,
)
from geotrust.crypto.zkp.curve import CURVE_ORDER
from geotrust.errors import AuthorizationError, ConfigurationError, ResourceBoundError, ValidationError
from geotrust.storage import InMemoryTimedStore, LedgerClock, LedgerStore
from geotrust.testing import TrapdoorSetup, swap_components

ADMIN = "verifier-admin"


@pytest.fixture(scope="module")
def trapdoor():
    return TrapdoorSetup(input_count=2, seed=20240611)


@pytest.fixture
def store():
    return LedgerStore(LedgerClock())


@pytest.fixture
def verifier(store, trapdoor):
    verifier = ProofVerifier(store, ADMIN)
    verifier.set_verification_key(ADMIN, trapdoor.verification_key)
    return verifier


class TestZKPConfig:
    """Test ZKPConfig validation."""

    def test_defaults(self):
        config = ZKPConfig()
        assert config.max_public_inputs == 16
        assert config.max_batch_size == 100
        assert config.min_grid_size == 1_000_000
        assert config.max_grid_size == 10_000_000
        assert config.max_cell_id == 100_000

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_public_inputs": 0},
            {"max_batch_size": 0},
            {"replay_retention": 0},
            {"min_grid_size": 10, "max_grid_size": 5},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigurationError):
            ZKPConfig(**kwargs)


class TestPublicBindingSpec:
    """Test binding of public inputs to a plaintext claim."""

    def test_matching_inputs(self):
        binding = PublicBindingSpec(expected_cell_id=7, min_grid_size=10, max_grid_size=20, max_cell_id=100)
        assert binding.check([7, 15]) is None

    def test_cell_mismatch(self):
        binding = PublicBindingSpec(expected_cell_id=7)
        assert "does not match" in binding.check([8, 15])

    def test_empty_inputs(self):
        assert PublicBindingSpec(expected_cell_id=7).check([]) == "no public inputs"

    def test_grid_bounds(self):
        binding = PublicBindingSpec(expected_cell_id=7, min_grid_size=10, max_grid_size=20)
        assert "below" in binding.check([7, 9])
        assert "above" in binding.check([7, 21])
        assert "missing" in binding.check([7])

    def test_cell_cap(self):
        binding = PublicBindingSpec(expected_cell_id=101, max_cell_id=100)
        assert "exceeds" in binding.check([101])


class TestReplayGuard:
    """Test ReplayGuard."""

    def setup_method(self):
        self.clock = LedgerClock()
        self.guard = ReplayGuard(InMemoryTimedStore(self.clock, "proof_ids"), retention=10)

    def test_check_and_record_once(self):
        proof_id = Hash.from_hex("11" * 32)

        assert self.guard.check_and_record(proof_id, self.clock.now())
        assert not self.guard.check_and_record(proof_id, self.clock.now())
        assert self.guard.contains(proof_id)
        assert self.guard.contains(proof_id.to_hex())
        assert self.guard.recorded_at(proof_id) == 1

    def test_records_expire_after_retention(self):
        self.guard.check_and_record("aa", self.clock.now())

        self.clock.advance(10)
        assert self.guard.contains("aa")
        self.clock.advance()
        assert not self.guard.contains("aa")
        assert self.guard.prune() == 1

    def test_prune_keeps_records_inside_horizon(self):
        self.guard.check_and_record("old", self.clock.now())
        self.clock.advance(60)
        self.guard.check_and_record("recent", self.clock.now())
        self.clock.advance(5)

        assert self.guard.prune_before(50, self.clock.now()) == 1
        assert self.guard.contains("recent")
        assert not self.guard.contains("old")

    @pytest.mark.parametrize("before", [0, 66, 100, 57])
    def test_prune_before_validation(self, before):
        self.clock.advance(65)  # now == 66, horizon == 56
        with pytest.raises(ValidationError):
            self.guard.prune_before(before, self.clock.now())

    def test_retention_must_be_positive(self):
        with pytest.raises(ValidationError):
            ReplayGuard(InMemoryTimedStore(self.clock), retention=0)

    def test_stats(self):
        self.guard.check_and_record("aa", 1)
        assert self.guard.get_stats() == {"recorded_proofs": 1, "retention": 10}


class TestBatchVerifier:
    """Test BatchVerifier."""

    def test_cap_enforced_before_work(self):
        calls = []
        batch = BatchVerifier(max_batch_size=2)

        with pytest.raises(ResourceBoundError):
            batch.verify_batch(lambda p, b: calls.append(p), [(1, 1)] * 3)
        assert calls == []

    def test_non_pair_item_is_malformed(self):
        batch = BatchVerifier()
        ok = VerificationResult(status=ZKPStatus.SUCCESS, is_valid=True)

        results = batch.verify_batch(lambda p, b: ok, [("p", "b"), "junk", ("p", "b")])

        assert [r.is_valid for r in results] == [True, False, True]
        assert results[1].status == ZKPStatus.MALFORMED_DATA


class TestVerificationKeyManagement:
    """Test admin-gated key management."""

    def test_set_key_returns_hash(self, store, trapdoor):
        verifier = ProofVerifier(store, ADMIN)

        vk_hash = verifier.set_verification_key(ADMIN, trapdoor.verification_key)

        assert vk_hash == trapdoor.verification_key.get_hash()
        assert verifier.get_verification_key_hash() == vk_hash
        assert verifier.get_verification_key() == trapdoor.verification_key

    def test_non_admin_cannot_set_key(self, store, trapdoor):
        verifier = ProofVerifier(store, ADMIN)

        with pytest.raises(AuthorizationError):
            verifier.set_verification_key("mallory", trapdoor.verification_key)
        assert verifier.get_verification_key() is None

    def test_empty_ic_rejected(self, store, trapdoor):
        vk = trapdoor.verification_key
        empty = VerificationKey(alpha=vk.alpha, beta=vk.beta, gamma=vk.gamma, delta=vk.delta, ic=[])

        with pytest.raises(ValidationError):
            ProofVerifier(store, ADMIN).set_verification_key(ADMIN, empty)

    def test_oversized_ic_rejected(self, store, trapdoor):
        vk = trapdoor.verification_key
        oversized = VerificationKey(
            alpha=vk.alpha, beta=vk.beta, gamma=vk.gamma, delta=vk.delta, ic=[vk.ic[0]] * 18
        )

        with pytest.raises(ResourceBoundError):
            ProofVerifier(store, ADMIN).set_verification_key(ADMIN, oversized)

    def test_infinity_alpha_rejected(self, store, trapdoor):
        vk = trapdoor.verification_key
        degenerate = VerificationKey(
            alpha=encode_g1(bn128.Z1), beta=vk.beta, gamma=vk.gamma, delta=vk.delta, ic=vk.ic
        )

        with pytest.raises(ValidationError):
            ProofVerifier(store, ADMIN).set_verification_key(ADMIN, degenerate)

    def test_clear_key(self, verifier, trapdoor):
        verifier.clear_verification_key(ADMIN)

        assert verifier.get_verification_key() is None
        assert verifier.get_verification_key_hash() is None
        result = verifier.verify_detailed(trapdoor.location_proof(7), verifier.binding_for(7))
        assert result.status == ZKPStatus.NO_VERIFICATION_KEY

    def test_set_admin(self, verifier, trapdoor):
        verifier.set_admin(ADMIN, "new-admin")

        assert verifier.admin == "new-admin"
        with pytest.raises(AuthorizationError):
            verifier.clear_verification_key(ADMIN)

    def test_prune_replay_records_requires_admin(self, verifier, store):
        store.clock.advance(600_000)
        with pytest.raises(AuthorizationError):
            verifier.prune_replay_records("mallory", 10)
        assert verifier.prune_replay_records(ADMIN, 10) == 0


@pytest.mark.slow
class TestProofVerifier:
    """Test Groth16 verification with real pairings."""

    def test_honest_proof_accepted_once(self, verifier, trapdoor):
        proof = trapdoor.location_proof(7)
        binding = verifier.binding_for(7)

        first = verifier.verify_detailed(proof, binding)
        assert first.is_valid
        assert first.status == ZKPStatus.SUCCESS
        assert first.proof_id == proof.proof_id().to_hex()

        second = verifier.verify_detailed(proof, binding)
        assert not second.is_valid
        assert second.status == ZKPStatus.REPLAY_DETECTED

    def test_wrong_proof_rejected_and_not_recorded(self, verifier, trapdoor):
        proof = swap_components(trapdoor.location_proof(7), trapdoor.location_proof(7))

        result = verifier.verify_detailed(proof, verifier.binding_for(7))

        assert result.status == ZKPStatus.INVALID_PROOF
        assert not verifier.replay_guard.contains(proof.proof_id())

    def test_binding_mismatch_does_not_consume(self, verifier, trapdoor):
        proof = trapdoor.location_proof(7)

        mismatch = verifier.verify_detailed(proof, verifier.binding_for(8))
        assert mismatch.status == ZKPStatus.BINDING_MISMATCH
        assert verifier.verify(proof, verifier.binding_for(7))

    def test_batch_rejects_malformed_and_repeated_items(self, verifier, trapdoor):
        binding = verifier.binding_for(7)
        good = trapdoor.location_proof(7)
        malformed = trapdoor.location_proof(7)
        malformed.a = b"\x01" * 63

        assert verifier.verify_batch([(good, binding), (malformed, binding), (good, binding)]) == [
            True,
            False,
            False,
        ]


# Fixed scalars for a hand-built setup: alpha, beta, gamma, delta and the IC vector.
ALPHA, BETA, GAMMA, DELTA = 5, 7, 11, 13
IC_SCALARS = [3, 17, 19]
LOCATION_INPUTS = [7, 5_000_000]


def scalar_key() -> VerificationKey:
    return VerificationKey(
        alpha=encode_g1(bn128.multiply(bn128.G1, ALPHA)),
        beta=encode_g2(bn128.multiply(bn128.G2, BETA)),
        gamma=encode_g2(bn128.multiply(bn128.G2, GAMMA)),
        delta=encode_g2(bn128.multiply(bn128.G2, DELTA)),
        ic=[encode_g1(bn128.multiply(bn128.G1, u)) for u in IC_SCALARS],
    )


def scalar_proof(c_pairs_with: int, ic_pairs_with: int, a: int = 23, b: int = 29) -> Proof:
    """Proof whose C solves ``a*b = alpha*beta + c*x + s*y`` for the given ``x`` and ``y``."""
    s = IC_SCALARS[0]
    for value, u in zip(LOCATION_INPUTS, IC_SCALARS[1:]):
        s += value * u
    c = (a * b - ALPHA * BETA - s * ic_pairs_with) * pow(c_pairs_with, -1, CURVE_ORDER) % CURVE_ORDER
    return Proof(
        a=encode_g1(bn128.multiply(bn128.G1, a)),
        b=encode_g2(bn128.multiply(bn128.G2, b)),
        c=encode_g1(bn128.multiply(bn128.G1, c)),
        public_inputs=list(LOCATION_INPUTS),
    )


@pytest.mark.slow
class TestPairingEquation:
    """Test that C pairs with gamma and the IC sum pairs with delta."""

    def setup_method(self):
        self.verifier = ProofVerifier(LedgerStore(LedgerClock()), ADMIN)
        self.verifier.set_verification_key(ADMIN, scalar_key())

    def test_c_with_gamma_ic_with_delta_accepted(self):
        proof = scalar_proof(c_pairs_with=GAMMA, ic_pairs_with=DELTA)

        result = self.verifier.verify_detailed(proof, self.verifier.binding_for(7))

        assert result.is_valid
        assert result.status == ZKPStatus.SUCCESS

    def test_swapped_assignment_rejected(self):
        proof = scalar_proof(c_pairs_with=DELTA, ic_pairs_with=GAMMA)

        result = self.verifier.verify_detailed(proof, self.verifier.binding_for(7))

        assert result.status == ZKPStatus.INVALID_PROOF
        assert not self.verifier.replay_guard.contains(proof.proof_id())


class TestProofVerifierRejections:
    """Test rejections that happen before any pairing."""

    def test_no_verification_key(self, store, trapdoor):
        verifier = ProofVerifier(store, ADMIN)
        result = verifier.verify_detailed(trapdoor.location_proof(7), verifier.binding_for(7))
        assert result.status == ZKPStatus.NO_VERIFICATION_KEY
        assert not result.is_valid

    def test_input_count_mismatch(self, verifier):
        three_inputs = TrapdoorSetup(input_count=3, seed=3).prove([7, 5_000_000, 1])

        result = verifier.verify_detailed(three_inputs, verifier.binding_for(7))

        assert result.status == ZKPStatus.INVALID_INPUT

    def test_too_many_inputs_raises(self, verifier, trapdoor):
        proof = trapdoor.location_proof(7)
        proof.public_inputs = [7, 5_000_000] + [0] * 15

        with pytest.raises(ResourceBoundError):
            verifier.verify(proof, verifier.binding_for(7))

    def test_too_many_inputs_in_batch_is_false(self, verifier, trapdoor):
        proof = trapdoor.location_proof(7)
        proof.public_inputs = [7, 5_000_000] + [0] * 15

        results = verifier.verify_batch_detailed([(proof, verifier.binding_for(7))])

        assert results[0].status == ZKPStatus.RESOURCE_EXCEEDED
        assert not results[0].is_valid

    def test_oversized_batch_raises(self, store, trapdoor):
        verifier = ProofVerifier(store, ADMIN, ZKPConfig(max_batch_size=2))
        item = (trapdoor.location_proof(7), verifier.binding_for(7))

        with pytest.raises(ResourceBoundError):
            verifier.verify_batch([item] * 3)

    def test_scalar_out_of_range(self, verifier, trapdoor):
        proof = trapdoor.location_proof(7)
        proof.public_inputs = [7, CURVE_ORDER]

        assert verifier.verify_detailed(proof, verifier.binding_for(7)).status == ZKPStatus.MALFORMED_DATA

    def test_grid_size_out_of_bounds(self, verifier, trapdoor):
        proof = trapdoor.location_proof(7, grid_size=999_999)
        assert verifier.verify_detailed(proof, verifier.binding_for(7)).status == ZKPStatus.BINDING_MISMATCH

    def test_cell_above_cap(self, verifier, trapdoor):
        proof = trapdoor.location_proof(100_001)
        result = verifier.verify_detailed(proof, verifier.binding_for(100_001))
        assert result.status == ZKPStatus.BINDING_MISMATCH

    def test_grid_bounds_can_be_disabled(self, store):
        verifier = ProofVerifier(store, ADMIN, ZKPConfig(enforce_grid_bounds=False))
        binding = verifier.binding_for(7)
        assert binding.min_grid_size is None
        assert binding.check([7, 1]) is None

    def test_non_proof_is_malformed(self, verifier):
        result = verifier.verify_detailed("not a proof", verifier.binding_for(7))
        assert result.status == ZKPStatus.MALFORMED_DATA

    def test_stats(self, verifier):
        stats = verifier.get_stats()
        assert stats["verification_key_set"]
        assert stats["input_count"] == 2
        assert stats["recorded_proofs"] == 0
