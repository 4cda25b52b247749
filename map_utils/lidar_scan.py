from dataclasses import asdict, dataclass
from queue import Empty, Queue
from typing import List

from colorama import Style

from misc.constant import LIDAR, LIDAR_BLUEPRINT, SENSOR_TIMEOUT

from .point_cloud import (
    concatenate_points,
    measurement_to_array,
    to_world_frame,
    transform_to_matrix,
)


class SensorTimeoutError(RuntimeError):
    pass


@dataclass
class LidarConfig:
    channels: int = LIDAR["channels"]
    points_per_second: int = LIDAR["points_per_second"]
    rotation_frequency: float = LIDAR["rotation_frequency"]
    range: float = LIDAR["range"]

    def apply(self, blueprint):
        for key, value in asdict(self).items():
            blueprint.set_attribute(key, str(value))
        return blueprint


class LidarScanner:
    """Sweeps a pool of ray-cast LiDARs over waypoints in synchronous mode.

    Each sensor owns a queue filled by its listen callback with
    (frame, world points). After every tick the scanner pulls, per active
    sensor, the first measurement taken at or after the ticked frame.
    """

    def __init__(self, world_manager, num_sensors, config=None, timeout=SENSOR_TIMEOUT):
        if num_sensors < 1:
            raise ValueError(f"At least one sensor is required, got {num_sensors}")
        self.world_manager = world_manager
        self.num_sensors = num_sensors
        self.config = config if config is not None else LidarConfig()
        self.timeout = timeout
        self.sensors = []
        self.measurement_queues: List[Queue] = []

    @staticmethod
    def parse_measurement(measurement, queue_to_put):
        points = measurement_to_array(measurement)
        matrix = transform_to_matrix(measurement.transform)
        queue_to_put.put((measurement.frame, to_world_frame(points, matrix)))

    def spawn(self):
        for _ in range(self.num_sensors):
            blueprint = self.config.apply(self.world_manager.get_blueprint(LIDAR_BLUEPRINT))
            sensor = self.world_manager.spawn_actor(blueprint)
            measurement_queue = Queue()
            self.sensors.append(sensor)
            self.measurement_queues.append(measurement_queue)
            sensor.listen(
                lambda measurement, q=measurement_queue: self.parse_measurement(measurement, q)
            )

    def wait_for_frame(self, measurement_queue, frame):
        while True:
            try:
                data_frame, points = measurement_queue.get(True, self.timeout)
            except Empty:
                raise SensorTimeoutError(
                    f"No LiDAR measurement for frame {frame} within {self.timeout} seconds"
                ) from None
            if data_frame >= frame:
                return points

    def scan(self, waypoints, verbose=True):
        if len(self.sensors) == 0:
            self.spawn()

        chunks = []
        num_waypoints = len(waypoints)
        for start in range(0, num_waypoints, self.num_sensors):
            batch = waypoints[start : start + self.num_sensors]
            for waypoint, sensor in zip(batch, self.sensors):
                sensor.set_transform(waypoint.transform)

            # The new sensor poses only take effect on the next tick
            frame = self.world_manager.tick()

            for measurement_queue in self.measurement_queues[: len(batch)]:
                chunks.append(self.wait_for_frame(measurement_queue, frame))

            if verbose:
                done = start + len(batch)
                print(
                    f"\r{Style.BRIGHT}Scanning{Style.RESET_ALL}: {done}/{num_waypoints} waypoints",
                    end="\n" if done == num_waypoints else "",
                    flush=True,
                )
        return concatenate_points(chunks)

    def destroy(self):
        """Stop and destroy every sensor, then re-raise the first failure if any."""
        errors = []
        for sensor in self.sensors:
            for release in (sensor.stop, sensor.destroy):
                try:
                    release()
                except RuntimeError as e:
                    errors.append(e)
        self.sensors.clear()
        self.measurement_queues.clear()
        if errors:
            raise errors[0]
