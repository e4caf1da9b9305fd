"""
Simulator - Fixed-step driver for every car in a world.

Provides:
- Lockstep ticking of all cars with per-car inputs and surfaces
- Optional wall-clock pacing
- A bounded history of per-car tick results
- Hooks around each step for recorders and controllers
"""

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional

from racedyn.car.car import Car, CarConfig, CarInputs
from racedyn.car.dynamics import TickResult
from racedyn.simulation.world import World
from racedyn.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Called with (simulator, dt)
StepHook = Callable[["Simulator", float], None]

# Supplies this frame's inputs by car id
InputProvider = Callable[["Simulator"], Mapping[int, CarInputs]]


@dataclass
class SimulatorConfig:
    """Simulator configuration."""
    fixed_dt: float = 0.01           # Seconds per tick (100 Hz)
    real_time: bool = False          # Pace ticks to the wall clock
    max_time: float = 600.0          # Stop once the world clock reaches this

    # Per-frame tick results kept for inspection
    record_history: bool = True
    history_size: int = 10000

    def validate(self) -> None:
        """Validate simulator settings.

        Raises:
            ConfigurationError: If the time step, limit or history size is not positive.
        """
        if self.fixed_dt <= 0.0:
            raise ConfigurationError("fixed_dt must be positive")
        if self.max_time <= 0.0:
            raise ConfigurationError("max_time must be positive")
        if self.history_size < 1:
            raise ConfigurationError("history_size must be at least 1")


@dataclass(frozen=True)
class StepRecord:
    """Tick results of every car for one frame."""
    frame: int
    time_s: float
    results: Dict[int, TickResult]


class Simulator:
    """Ticks every car in a world once per frame.

    Cars are ticked in insertion order with the inputs supplied for that
    frame; a car without inputs coasts. Cars never interact.

    Usage:
        sim = Simulator()
        sim.spawn_cars(2)
        sim.start()

        while sim.is_running:
            results = sim.step({0: CarInputs(throttle=100)})
    """

    def __init__(self, config: SimulatorConfig | None = None, world: World | None = None):
        """Initialize simulator.

        Args:
            config: Simulator configuration. Uses defaults if None.
            world: World to drive. A new empty world if None.

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        self.config = config or SimulatorConfig()
        self.config.validate()
        self.world = world or World()

        self._running = False
        self._paused = False
        self._history: Deque[StepRecord] = deque(maxlen=self.config.history_size)
        self._before_step: List[StepHook] = []
        self._after_step: List[StepHook] = []
        # Wall-clock time the next paced tick is due
        self._next_tick_at = 0.0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def time(self) -> float:
        """World clock in seconds."""
        return self.world.time

    @property
    def cars(self) -> List[Car]:
        return self.world.cars

    @property
    def history(self) -> List[StepRecord]:
        """Recorded frames, oldest first."""
        return list(self._history)

    def spawn_cars(
        self,
        count: int,
        config_factory: Callable[[], CarConfig] | None = None,
        spacing_m: float = 10.0,
    ) -> List[int]:
        """Spawn cars in a single file behind the origin.

        Returns:
            List of car IDs
        """
        return self.world.spawn_cars(count, config_factory, spacing_m)

    def add_car(self, car: Car) -> int:
        return self.world.add_car(car)

    def get_car(self, car_id: int) -> Optional[Car]:
        return self.world.get_car(car_id)

    def add_pre_step_callback(self, callback: StepHook) -> None:
        """Run callback(simulator, dt) before the cars are ticked."""
        self._before_step.append(callback)

    def add_post_step_callback(self, callback: StepHook) -> None:
        """Run callback(simulator, dt) after the clock has advanced."""
        self._after_step.append(callback)

    def start(self) -> None:
        self._running = True
        self._paused = False
        self._next_tick_at = time.perf_counter()
        logger.info("simulation started with %d cars", self.world.car_count)

    def stop(self) -> None:
        if self._running:
            logger.info("simulation stopped at t=%.2fs after %d frames",
                        self.world.time, self.world.frame)
        self._running = False

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False
        self._next_tick_at = time.perf_counter()

    def _wait_for_tick(self, dt: float) -> None:
        delay = self._next_tick_at - time.perf_counter()
        if delay > 0.0:
            time.sleep(delay)
        # Fall back to now when running behind rather than bursting to catch up
        self._next_tick_at = max(self._next_tick_at, time.perf_counter()) + dt

    def step(self, inputs: Mapping[int, CarInputs] | None = None) -> Dict[int, TickResult]:
        """Tick every car once.

        Args:
            inputs: CarInputs by car id for this frame

        Returns:
            TickResult by car id, empty when not running or paused
        """
        if not self._running or self._paused:
            return {}

        dt = self.config.fixed_dt
        if self.config.real_time:
            self._wait_for_tick(dt)

        for hook in self._before_step:
            hook(self, dt)

        inputs = inputs or {}
        results = {
            car.car_id: car.step(inputs.get(car.car_id, CarInputs()), dt,
                                 self.world.get_surface(car.car_id))
            for car in self.world.cars
        }
        self.world.advance_time(dt)

        if self.config.record_history:
            self._history.append(StepRecord(self.world.frame, self.world.time, results))

        if self.world.time >= self.config.max_time:
            self.stop()

        for hook in self._after_step:
            hook(self, dt)

        return results

    def step_until(
        self,
        condition: Callable[["Simulator"], bool],
        input_provider: InputProvider | None = None,
        max_steps: int = 100000,
    ) -> int:
        """Tick until condition(simulator) holds or the simulation stops.

        Args:
            condition: Checked before every tick
            input_provider: Returns each frame's inputs; cars coast if None
            max_steps: Upper bound on ticks taken

        Returns:
            Number of ticks taken
        """
        steps = 0
        while self._running and steps < max_steps and not condition(self):
            self.step(input_provider(self) if input_provider else None)
            steps += 1
        return steps

    def speed_trace(self, car_id: int) -> List[float]:
        """Speed in km/h of one car over the recorded frames."""
        return [record.results[car_id].speed_kph
                for record in self._history if car_id in record.results]

    def clear_history(self) -> None:
        self._history.clear()

    def snapshot(self) -> Dict[int, Dict[str, Any]]:
        """Current telemetry of every car, by car id."""
        return {car.car_id: car.get_telemetry() for car in self.cars}

    def reset(self, keep_cars: bool = False) -> None:
        """Stop and rewind.

        Args:
            keep_cars: Return cars to their grid slots instead of removing them
        """
        if keep_cars:
            self.world.reset_cars()
        else:
            self.world.reset()

        self._history.clear()
        self._running = False
        self._paused = False

    def get_state(self) -> Dict[str, Any]:
        return {
            "config": {
                "fixed_dt": self.config.fixed_dt,
                "real_time": self.config.real_time,
                "max_time": self.config.max_time,
            },
            "running": self._running,
            "paused": self._paused,
            "history_frames": len(self._history),
            "world": self.world.get_state(),
        }
