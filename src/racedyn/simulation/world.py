"""
World - World state management for the simulation.

Manages:
- Cars in the simulation, by id
- Surface conditions under each car
- Global time and frame counter
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from racedyn.car.car import Car, CarConfig, SurfaceConditions

logger = logging.getLogger(__name__)


class World:
    """World state container for simulation.

    Cars are owned exclusively by the world once added; each keeps its own
    dynamics, engine and transmission state.
    """

    def __init__(self, surface: SurfaceConditions | None = None):
        """Initialize world.

        Args:
            surface: Default surface for cars without their own override
        """
        self.surface = surface or SurfaceConditions()

        self._cars: Dict[int, Car] = {}
        self._surfaces: Dict[int, SurfaceConditions] = {}
        # (x, y, heading) each car was placed at when added
        self._grid_slots: Dict[int, Tuple[float, float, float]] = {}
        self._next_car_id: int = 0

        self._time: float = 0.0
        self._frame: int = 0

    @property
    def time(self) -> float:
        """Current simulation time in seconds."""
        return self._time

    @property
    def frame(self) -> int:
        """Current frame number."""
        return self._frame

    @property
    def cars(self) -> List[Car]:
        """List of all cars, in insertion order."""
        return list(self._cars.values())

    @property
    def car_count(self) -> int:
        return len(self._cars)

    def add_car(self, car: Car) -> int:
        """Add a car to the world.

        The car's current position and heading become its grid slot.

        Args:
            car: Car to add

        Returns:
            Car ID assigned by the world
        """
        car_id = self._next_car_id
        self._next_car_id += 1

        car.car_id = car_id
        self._cars[car_id] = car
        self._grid_slots[car_id] = (car.x, car.y, car.heading)
        logger.debug("added car %d (%s)", car_id, car.config.name)
        return car_id

    def remove_car(self, car_id: int) -> bool:
        """Remove a car from the world.

        Returns:
            True if car was removed
        """
        if car_id not in self._cars:
            return False
        del self._cars[car_id]
        self._surfaces.pop(car_id, None)
        self._grid_slots.pop(car_id, None)
        return True

    def get_car(self, car_id: int) -> Optional[Car]:
        return self._cars.get(car_id)

    def spawn_cars(
        self,
        count: int,
        config_factory: Callable[[], CarConfig] | None = None,
        spacing_m: float = 10.0,
    ) -> List[int]:
        """Spawn cars on a starting grid behind the origin.

        Args:
            count: Number of cars to spawn
            config_factory: Builds each car's configuration (defaults if None)
            spacing_m: Distance between grid slots

        Returns:
            List of car IDs
        """
        car_ids = []
        for i in range(count):
            config = config_factory() if config_factory else None
            car = Car(config)
            car.reset(x=0.0, y=-i * spacing_m, heading=0.0)
            car_ids.append(self.add_car(car))
        return car_ids

    def set_surface(self, car_id: int, surface: SurfaceConditions) -> None:
        """Set the surface under one car (e.g. from a track lookup)."""
        self._surfaces[car_id] = surface

    def get_surface(self, car_id: int) -> SurfaceConditions:
        return self._surfaces.get(car_id, self.surface)

    def advance_time(self, dt: float) -> None:
        """Advance simulation time by one frame."""
        self._time += dt
        self._frame += 1

    def get_grid_slot(self, car_id: int) -> Optional[Tuple[float, float, float]]:
        return self._grid_slots.get(car_id)

    def reset_cars(self) -> None:
        """Return every car to a standing start on its grid slot."""
        for car_id, car in self._cars.items():
            x, y, heading = self._grid_slots[car_id]
            car.reset(x=x, y=y, heading=heading)

    def reset(self) -> None:
        """Remove all cars and rewind the clock."""
        self._cars.clear()
        self._surfaces.clear()
        self._grid_slots.clear()
        self._next_car_id = 0
        self._time = 0.0
        self._frame = 0

    def get_state(self) -> dict:
        """Get world state for telemetry.

        Returns:
            Dictionary containing world state
        """
        return {
            "time": self._time,
            "frame": self._frame,
            "car_count": self.car_count,
            "surface": {
                "traction_mod": self.surface.traction_mod,
                "decel_mod": self.surface.decel_mod,
            },
        }
