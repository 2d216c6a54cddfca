"""Encryption visualizer for pseudoshell.

A decorative, fixed-step walk through the stages of AES-256 or RSA-OAEP.
No real cryptography happens here: each step simply waits its duration and
the "ciphertext" is derived from a base64 digest of the plaintext.

Runs are cooperative and cancelable. Cancelling stops step advancement
and suppresses the final cipher; it never raises.
"""

from __future__ import annotations

import base64
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from .config import get_config

LOGGER = logging.getLogger(__name__)

AES_256 = "AES-256"
RSA_OAEP = "RSA-OAEP"


@dataclass(frozen=True)
class Step:
    """One simulated stage of an algorithm."""

    id: str
    label: str
    desc: str
    duration: int  # ms


ALGORITHM_STEPS: Dict[str, Tuple[Step, ...]] = {
    AES_256: (
        Step("pad", "Padding", "PKCS#7 style padding added to align block size (16B).", 700),
        Step("sub", "SubBytes", "Non-linear byte substitution using S-box.", 900),
        Step("shift", "ShiftRows", "Row-wise cyclic left shifts increase diffusion.", 700),
        Step("mix", "MixColumns", "Column mix via Galois field transform.", 900),
        Step("round", "Round Keys", "XOR with round key derived from key schedule.", 600),
        Step("final", "Final Cipher", "Output ciphertext block(s).", 500),
    ),
    RSA_OAEP: (
        Step("hashLbl", "Label Hash", "Hash optional label to fixed length.", 600),
        Step("seed", "Random Seed", "Generate secure random seed.", 600),
        Step("mgf", "MGF1 Mask", "Derive masks with MGF1 and XOR (OAEP).", 900),
        Step("assemble", "Encode Block", "Concatenate DB, seed, apply masks.", 900),
        Step("modexp", "Mod Exp", "Modular exponentiation with public key.", 1100),
        Step("final", "Ciphertext", "Encoded integer -> byte array.", 500),
    ),
}


def generate_sim_cipher(algo: str, plaintext: str) -> str:
    """Derive the canned "ciphertext" for a plaintext.

    AES-256 yields ``<digest>.blk``; RSA-OAEP yields a ``0x`` hex string.
    """
    digest = base64.b64encode(plaintext.encode("utf-8")).decode("ascii")[:24]
    if algo == AES_256:
        return digest.rstrip("=") + ".blk"
    return "0x" + "".join(f"{ord(c):02x}" for c in digest)[:48]


@dataclass
class VisualizerResult:
    """Outcome of a visualizer run."""

    algo: str
    cipher: Optional[str] = None
    elapsed_ms: float = 0.0
    completed_steps: List[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def complete(self) -> bool:
        return self.cipher is not None


class VisualizerRun:
    """A single cancelable run over one algorithm's steps.

    Args:
        algo: AES_256 or RSA_OAEP
        plaintext: Input text, truncated to the configured maximum
        speed: Duration divisor (2.0 runs twice as fast)

    Raises:
        ValueError: If the algorithm is unknown
    """

    def __init__(self, algo: str, plaintext: str, speed: Optional[float] = None):
        if algo not in ALGORITHM_STEPS:
            raise ValueError(f"unknown algorithm: {algo}")
        config = get_config().visualizer
        self.algo = algo
        self.plaintext = plaintext[: config.max_plaintext]
        self.speed = speed if speed is not None else config.speed
        self.steps = ALGORITHM_STEPS[algo]
        self._cancelled = threading.Event()
        self.progress_index = -1

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Stop the run; the current wait returns early and no cipher is produced."""
        LOGGER.debug("Visualizer run cancelled at step %d", self.progress_index)
        self._cancelled.set()
        self.progress_index = -1

    def run(self, on_step: Optional[Callable[[int, Step], None]] = None) -> VisualizerResult:
        """Walk every step, waiting its duration, then emit the cipher.

        This blocks; call cancel() from another thread to stop it.
        """
        result = VisualizerResult(algo=self.algo)
        for index, step in enumerate(self.steps):
            if self.cancelled:
                break
            self.progress_index = index
            if on_step is not None:
                on_step(index, step)
            start = time.monotonic()
            if self._cancelled.wait(step.duration / 1000.0 / self.speed):
                break
            result.elapsed_ms += (time.monotonic() - start) * 1000.0
            result.completed_steps.append(step.id)

        if self.cancelled:
            result.cancelled = True
            return result

        self.progress_index = len(self.steps)
        result.cipher = generate_sim_cipher(self.algo, self.plaintext)
        return result


__all__ = [
    "AES_256",
    "RSA_OAEP",
    "Step",
    "ALGORITHM_STEPS",
    "VisualizerResult",
    "VisualizerRun",
    "generate_sim_cipher",
]
