"""
Sentinel Loop
=============

The detection-and-alert loop. This is the process's single control flow.

Each cycle:
    1. Sleep for the frame interval (pacing, ~20 cycles/second by default)
    2. Read a raw frame; on failure skip the cycle, keeping the baseline
    3. Preprocess it (grayscale + blur)
    4. Compare against the previous processed frame
    5. If motion is flagged, print and dispatch an alert (best-effort)
    6. The processed frame becomes the new baseline

Key Design Decisions:
    - The previous frame is a single private slot owned by the Sentinel;
      only run_cycle() and seed() write it
    - A dropped frame never advances or corrupts the baseline
    - Dispatch failures are logged and swallowed; detection never stops
      because alerting failed
    - The frame source is entered as a context manager, so the camera
      is released on normal exit, exceptions, Ctrl+C and SIGTERM
"""

import logging
import signal
import sys
import time
from enum import Enum
from typing import Callable, Optional

from miniguard.alerts.telegram import AlertDispatcher
from miniguard.capture.frame import Frame, is_valid_image
from miniguard.capture.preprocess import FrameProcessError, Preprocessor
from miniguard.capture.source import FrameSource
from miniguard.detection.motion import MotionDetector
from miniguard.models.alert import AlertEvent
from miniguard.models.credentials import Credentials


logger = logging.getLogger(__name__)

ARMED_BANNER = "Mini-Guard armed. Waiting for motion … (Ctrl+C to exit)"
ALERT_LINE_TEMPLATE = "⚠️  Motion detected! ({score} px)"


class SeedFrameError(Exception):
    """Raised when the first frame cannot be read or preprocessed."""
    pass


class CycleOutcome(str, Enum):
    """
    Result of one sentinel cycle.

    Attributes:
        SKIPPED: Frame read or preprocessing failed; baseline kept
        QUIET: Frame compared, no motion
        ALERTED: Motion flagged and an alert was handed to the dispatcher
        RESEEDED: Frame size changed (e.g. camera reconnect); the frame
            became the new baseline without comparison
    """

    SKIPPED = "SKIPPED"
    QUIET = "QUIET"
    ALERTED = "ALERTED"
    RESEEDED = "RESEEDED"


class Sentinel:
    """
    Motion sentinel orchestrating source, detector and dispatcher.

    Attributes:
        source: Frame source (entered as a context manager by run())
        detector: Motion detector
        dispatcher: Alert transport
        credentials: Read-only alert credentials
        frame_interval: Pacing delay between cycles, in seconds

    Example:
        sentinel = Sentinel(
            source=CameraSource(0),
            detector=MotionDetector(),
            dispatcher=TelegramDispatcher(),
            credentials=CredentialStore().load(),
        )
        sentinel.install_signal_handlers()
        sentinel.run()
    """

    def __init__(
        self,
        source: FrameSource,
        detector: MotionDetector,
        dispatcher: AlertDispatcher,
        credentials: Credentials,
        preprocessor: Optional[Callable[[Frame], Frame]] = None,
        frame_interval: float = 0.05,
        sleep: Callable[[float], None] = time.sleep,
        output: Callable[[str], None] = print,
        beep: bool = False,
        log_every_n_cycles: int = 1200,
    ) -> None:
        """
        Initialize the sentinel.

        Args:
            source: Frame source
            detector: Motion detector
            dispatcher: Alert dispatcher
            credentials: Credentials passed to every dispatch
            preprocessor: Raw -> processed frame callable
                (defaults to Preprocessor(21))
            frame_interval: Seconds to wait before each read
            sleep: Sleep function (injectable for tests)
            output: Operator-visible line sink (stdout by default)
            beep: Ring the terminal bell on every alert
            log_every_n_cycles: Status logging interval
        """
        if frame_interval < 0:
            raise ValueError(f"frame_interval must be >= 0, got {frame_interval}")

        self.source = source
        self.detector = detector
        self.dispatcher = dispatcher
        self.credentials = credentials
        self.preprocessor = preprocessor or Preprocessor()
        self.frame_interval = frame_interval
        self.beep = beep
        self.log_every_n_cycles = log_every_n_cycles

        self._sleep = sleep
        self._output = output

        # Rolling baseline, single writer
        self._previous: Optional[Frame] = None
        self._stop_requested: bool = False

        # Counters
        self._cycle_count: int = 0
        self._frames_processed: int = 0
        self._frames_dropped: int = 0
        self._frames_reseeded: int = 0
        self._alerts_sent: int = 0
        self._dispatch_failures: int = 0

    @property
    def previous(self) -> Optional[Frame]:
        """Current baseline (processed frame), None before seeding."""
        return self._previous

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def stop(self) -> None:
        """Ask the loop to exit after the current cycle."""
        self._stop_requested = True

    def install_signal_handlers(self) -> None:
        """
        Route SIGTERM to stop() and unwind the loop immediately.

        The handler raises KeyboardInterrupt so a cycle blocked in
        source.read() is abandoned and the source is released by the
        `with` block in run(). Must be called from the main thread.
        """

        def _handle_sigterm(signum, frame):
            logger.info("Received SIGTERM, initiating graceful shutdown...")
            self.stop()
            raise KeyboardInterrupt("SIGTERM")

        signal.signal(signal.SIGTERM, _handle_sigterm)

    def seed(self) -> Frame:
        """
        Read and preprocess the first frame to initialize the baseline.

        Raises:
            SeedFrameError: If the first frame is unusable
        """
        raw = self.source.read()
        if raw is None or not is_valid_image(raw.image):
            raise SeedFrameError(
                "Could not read an initial frame from the camera. "
                "The device opened but delivered no image."
            )

        try:
            processed = self.preprocessor(raw)
        except FrameProcessError as e:
            raise SeedFrameError(f"Initial frame could not be preprocessed: {e}") from e

        self._previous = processed
        logger.debug(f"Baseline seeded from frame {raw.frame_id}")
        return processed

    def run(self, max_cycles: Optional[int] = None) -> dict:
        """
        Open the source, seed the baseline and loop until stopped.

        Args:
            max_cycles: Stop after this many cycles (None = unbounded)

        Returns:
            Final metrics dict

        Raises:
            CameraOpenError: If the source cannot be opened
            SeedFrameError: If the first frame is unusable
        """
        with self.source:
            baseline = self.seed()
            self._output(ARMED_BANNER)
            fraction = self.detector.threshold_fraction(baseline.width, baseline.height)
            logger.info(
                f"Sentinel armed: {baseline.width}x{baseline.height}, "
                f"interval={self.frame_interval * 1000:.0f}ms, "
                f"threshold={self.detector.threshold_px}px ({fraction:.1%} of frame), "
                f"cutoff={self.detector.sensitivity_cutoff}"
            )

            cycles = 0
            while not self._stop_requested:
                if max_cycles is not None and cycles >= max_cycles:
                    break
                self.run_cycle()
                cycles += 1

        logger.info(f"Sentinel stopped: {self.get_metrics()}")
        return self.get_metrics()

    def run_cycle(self) -> CycleOutcome:
        """
        Execute one pacing-read-detect-alert cycle.

        Returns:
            CycleOutcome for this cycle
        """
        if self._previous is None:
            raise SeedFrameError("run_cycle() called before seed()")

        self._sleep(self.frame_interval)
        self._cycle_count += 1

        raw = self.source.read()
        if raw is None or not is_valid_image(raw.image):
            self._frames_dropped += 1
            logger.debug("Empty frame, skipping cycle")
            return CycleOutcome.SKIPPED

        try:
            current = self.preprocessor(raw)
        except FrameProcessError as e:
            self._frames_dropped += 1
            logger.warning(f"Frame preprocessing failed, skipping cycle: {e}")
            return CycleOutcome.SKIPPED

        if current.image.shape != self._previous.image.shape:
            logger.warning(
                f"Frame size changed from {self._previous.image.shape} to "
                f"{current.image.shape}, reseeding baseline"
            )
            self._previous = current
            self._frames_reseeded += 1
            return CycleOutcome.RESEEDED

        result = self.detector.evaluate(self._previous, current)

        outcome = CycleOutcome.QUIET
        if result.motion:
            self._alert(result.score)
            outcome = CycleOutcome.ALERTED

        self._previous = current
        self._frames_processed += 1

        if self._cycle_count % self.log_every_n_cycles == 0:
            logger.info(
                f"Sentinel [cycle {self._cycle_count}]: "
                f"processed={self._frames_processed}, "
                f"dropped={self._frames_dropped}, "
                f"alerts={self._alerts_sent}, last_score={result.score}"
            )

        return outcome

    def _alert(self, score: int) -> None:
        event = AlertEvent.from_score(score)
        self._output(ALERT_LINE_TEMPLATE.format(score=score))
        if self.beep:
            sys.stdout.write("\a")
            sys.stdout.flush()

        try:
            delivered = self.dispatcher.dispatch(event, self.credentials)
        except Exception as e:
            logger.error(f"Alert dispatch raised (score={score}): {type(e).__name__}: {e}")
            delivered = False

        if delivered:
            self._alerts_sent += 1
        else:
            self._dispatch_failures += 1

    def get_metrics(self) -> dict:
        """Get loop counters for observability."""
        return {
            "cycles": self._cycle_count,
            "frames_processed": self._frames_processed,
            "frames_dropped": self._frames_dropped,
            "frames_reseeded": self._frames_reseeded,
            "alerts_sent": self._alerts_sent,
            "dispatch_failures": self._dispatch_failures,
        }
