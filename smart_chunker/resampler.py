"""Block-based FFT resampling.

This module provides a synchronous resampler that consumes a fixed number
of input samples per call and returns a variable number of output samples.
Internally the signal is cut into FFT blocks whose sizes are exact integer
multiples of the reduced sample rate ratio. Each block is low-pass filtered
in the frequency domain, its spectrum is truncated or zero-extended to the
output block size, and the blocks are stitched back together with
overlap-add.
"""

import logging
from math import gcd

import numpy as np
from scipy.signal import windows

from .errors import ResampleError

logger = logging.getLogger(__name__)

RESAMPLER_CHUNK_SIZE = 1024


def _cutoff(fft_size_in: int, fft_size_out: int) -> float:
    """Relative cutoff of the anti-alias filter for a block pair."""
    cutoff = 0.4 ** (16.0 / fft_size_in)
    if fft_size_in > fft_size_out:
        cutoff *= fft_size_out / fft_size_in
    return cutoff


def _make_sinc(npoints: int, cutoff: float) -> np.ndarray:
    """Windowed sinc low-pass kernel normalized to unit DC gain."""
    window = windows.blackmanharris(npoints, sym=False) ** 2
    x = (np.arange(npoints) - npoints // 2) * cutoff
    kernel = window * np.sinc(x)
    return kernel / kernel.sum()


class FftFixedInResampler:
    """Fixed-input-size FFT resampler for a single channel.

    Every call to ``process`` must supply exactly ``chunk_size`` samples.
    Input that does not fill a whole FFT block is kept for the next call,
    so the number of output samples per call varies.

    Attributes:
        rate_in: Input sample rate in Hz
        rate_out: Output sample rate in Hz
        chunk_size: Number of input samples accepted per call
        fft_size_in: Input samples consumed per FFT block
        fft_size_out: Output samples produced per FFT block
    """

    def __init__(
        self,
        rate_in: int,
        rate_out: int,
        chunk_size: int = RESAMPLER_CHUNK_SIZE,
    ):
        """Initialize the resampler.

        Args:
            rate_in: Input sample rate in Hz
            rate_out: Output sample rate in Hz
            chunk_size: Input samples per ``process`` call (default: 1024)

        Raises:
            ResampleError: If any rate or the chunk size is not positive
        """
        if rate_in <= 0 or rate_out <= 0:
            raise ResampleError(
                f"failed to create resampler: sample rates must be positive, "
                f"got {rate_in} -> {rate_out}"
            )
        if chunk_size <= 0:
            raise ResampleError(
                f"failed to create resampler: chunk_size must be positive, "
                f"got {chunk_size}"
            )

        self.rate_in = int(rate_in)
        self.rate_out = int(rate_out)
        self.chunk_size = int(chunk_size)

        divisor = gcd(self.rate_in, self.rate_out)
        min_chunk_in = self.rate_in // divisor
        fft_chunks = -(-self.chunk_size // min_chunk_in)
        self.fft_size_in = fft_chunks * self.rate_in // divisor
        self.fft_size_out = fft_chunks * self.rate_out // divisor

        kernel = np.zeros(2 * self.fft_size_in)
        kernel[:self.fft_size_in] = _make_sinc(
            self.fft_size_in, _cutoff(self.fft_size_in, self.fft_size_out)
        )
        self._filter = np.fft.rfft(kernel)
        self._gain = self.fft_size_out / self.fft_size_in
        if self.fft_size_in < self.fft_size_out:
            self._keep_bins = self.fft_size_in + 1
        else:
            self._keep_bins = self.fft_size_out

        self._overlap = np.zeros(self.fft_size_out)
        self._pending = np.zeros(0, dtype=np.float32)

        logger.debug(
            f"Resampler {self.rate_in}Hz -> {self.rate_out}Hz: "
            f"fft blocks {self.fft_size_in} -> {self.fft_size_out}"
        )

    def _resample_block(self, block: np.ndarray) -> np.ndarray:
        spectrum = np.fft.rfft(block, n=2 * self.fft_size_in) * self._filter
        out_spectrum = np.zeros(self.fft_size_out + 1, dtype=complex)
        out_spectrum[:self._keep_bins] = spectrum[:self._keep_bins]
        wave = np.fft.irfft(out_spectrum, n=2 * self.fft_size_out) * self._gain

        out = wave[:self.fft_size_out] + self._overlap
        self._overlap = wave[self.fft_size_out:]
        return out

    def process(self, chunk: np.ndarray) -> np.ndarray:
        """Resample one chunk of exactly ``chunk_size`` samples.

        Args:
            chunk: 1-D float array of length ``chunk_size``

        Returns:
            Resampled float32 samples (possibly empty)

        Raises:
            ResampleError: If the chunk has the wrong shape or length
        """
        chunk = np.asarray(chunk, dtype=np.float32)
        if chunk.ndim != 1 or len(chunk) != self.chunk_size:
            raise ResampleError(
                f"resampling error: expected {self.chunk_size} samples, "
                f"got shape {chunk.shape}"
            )

        buffered = np.concatenate([self._pending, chunk])
        num_blocks = len(buffered) // self.fft_size_in

        out = np.empty(num_blocks * self.fft_size_out, dtype=np.float32)
        for n in range(num_blocks):
            block = buffered[n * self.fft_size_in:(n + 1) * self.fft_size_in]
            out[n * self.fft_size_out:(n + 1) * self.fft_size_out] = (
                self._resample_block(block)
            )

        self._pending = buffered[num_blocks * self.fft_size_in:]
        return out

    def reset(self):
        """Drop buffered input and overlap state."""
        self._overlap = np.zeros(self.fft_size_out)
        self._pending = np.zeros(0, dtype=np.float32)


def resample(
    samples: np.ndarray,
    rate_in: int,
    rate_out: int,
    chunk_size: int = RESAMPLER_CHUNK_SIZE,
) -> np.ndarray:
    """Resample a whole mono signal chunk by chunk.

    The final partial chunk is zero-padded to ``chunk_size`` before it is
    processed; output chunks are concatenated in order.

    Args:
        samples: 1-D float signal at ``rate_in``
        rate_in: Input sample rate in Hz
        rate_out: Output sample rate in Hz
        chunk_size: Fixed input chunk size (default: 1024)

    Returns:
        1-D float32 signal at ``rate_out``
    """
    resampler = FftFixedInResampler(rate_in, rate_out, chunk_size)
    samples = np.asarray(samples, dtype=np.float32)

    pieces = []
    for offset in range(0, len(samples), chunk_size):
        chunk = samples[offset:offset + chunk_size]
        if len(chunk) < chunk_size:
            chunk = np.pad(chunk, (0, chunk_size - len(chunk)))
        pieces.append(resampler.process(chunk))

    if not pieces:
        return np.zeros(0, dtype=np.float32)
    return np.concatenate(pieces)
