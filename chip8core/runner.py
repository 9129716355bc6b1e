"""Host frame loop driving an ``Interpreter``."""

import dataclasses
import time
from typing import Callable, Optional, Sequence

import numpy as np

from chip8core.faults import MachineFault
from chip8core.interpreter import Interpreter
from chip8core.logging import SessionLogger, build_tqdm_progress_bar


@dataclasses.dataclass(frozen=True)
class FrameResult:
    """Outcome of one frame.

    Attributes:
        display_changed: At least one step cleared or drew on the framebuffer
        steps: Instructions executed, not counting a faulting one
        fault: Fault that ended the frame early, if any
    """
    display_changed: bool
    steps: int
    fault: Optional[MachineFault] = None


class FrameRunner:
    """Runs an interpreter one frame at a time.

    Each frame hands in the keypad, updates the timers and executes either a
    fixed number of instructions or as many as fit in ``frame_budget``
    seconds. The runner never sleeps; pacing frames to the display is the
    host's job.

    Args:
        interpreter: Machine to drive
        instructions_per_frame: Steps per frame when no budget is set
        frame_budget: Wall-clock seconds of execution per frame
        clock: Monotonic clock used for the budget
        logger: Session logger for ``run``
    """

    def __init__(
        self,
        interpreter: Interpreter,
        instructions_per_frame: int = 10,
        frame_budget: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[SessionLogger] = None,
    ):
        if instructions_per_frame <= 0:
            raise ValueError(f"instructions_per_frame must be positive, got {instructions_per_frame}")
        if frame_budget is not None and frame_budget <= 0:
            raise ValueError(f"frame_budget must be positive, got {frame_budget}")
        self.interpreter = interpreter
        self.instructions_per_frame = instructions_per_frame
        self.frame_budget = frame_budget
        self.clock = clock
        self.logger = logger or SessionLogger(log_level="WARNING")

    @classmethod
    def from_frequency(cls, interpreter: Interpreter, instruction_frequency: int = 700, fps: int = 60, **kwargs):
        """Runner executing ``instruction_frequency`` instructions per second at ``fps``."""
        return cls(interpreter, instructions_per_frame=max(1, instruction_frequency // fps), **kwargs)

    def _frame_active(self, steps: int, start: float) -> bool:
        if self.frame_budget is None:
            return steps < self.instructions_per_frame
        return self.clock() - start < self.frame_budget

    def run_frame(self, keys: Optional[Sequence[bool]] = None) -> FrameResult:
        """Run one frame, stopping early at the first fault."""
        if keys is not None:
            self.interpreter.set_keys(keys)
        self.interpreter.update_timers()

        display_changed = False
        steps = 0
        start = self.clock()
        while self._frame_active(steps, start):
            result = self.interpreter.step()
            if result.fault is not None:
                return FrameResult(display_changed, steps, result.fault)
            display_changed |= result.display_changed
            steps += 1
        return FrameResult(display_changed, steps)

    def run(
        self,
        num_frames: int,
        input_fn: Optional[Callable[[int], Sequence[bool]]] = None,
        render_fn: Optional[Callable[[np.ndarray], None]] = None,
        progress: bool = False,
        log_interval: int = 60,
    ) -> dict:
        """Run up to ``num_frames`` frames and return a summary.

        Args:
            num_frames: Frames to run
            input_fn: Called with the frame number, returns the keypad snapshot
            render_fn: Called with a framebuffer copy after frames that changed it
            progress: Show a tqdm progress bar
            log_interval: Frames between statistics log lines

        Returns:
            Dictionary with ``frames``, ``instructions``, ``display_updates``
            and ``fault`` (``None`` unless a fault halted the run)
        """
        self.logger.log_session_start({
            "num_frames": num_frames,
            "instructions_per_frame": self.instructions_per_frame,
            "frame_budget": self.frame_budget,
            "program_size": len(self.interpreter.program),
        })
        update, close = build_tqdm_progress_bar(num_frames, disable=not progress)

        frames = instructions = display_updates = 0
        fault = None
        try:
            for frame in range(num_frames):
                keys = input_fn(frame) if input_fn is not None else None
                result = self.run_frame(keys)
                frames += 1
                instructions += result.steps
                if result.display_changed:
                    display_updates += 1
                    if render_fn is not None:
                        render_fn(self.interpreter.framebuffer)
                update(1)
                self.logger.log_frame(
                    frame,
                    {"steps": result.steps, "pc": f"0x{self.interpreter.pc:03X}"},
                    num_frames,
                    log_interval,
                )
                if result.fault is not None:
                    fault = result.fault
                    self.logger.error(f"Halting after frame {frame}: {fault}")
                    break
        finally:
            close()

        summary = {
            "frames": frames,
            "instructions": instructions,
            "display_updates": display_updates,
            "fault": fault,
        }
        self.logger.log_session_end(summary)
        return summary
