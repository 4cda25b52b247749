import numpy as np
import pytest

LOCAL_POINTS = np.array(
    [
        [1.0, 0.0, 0.0, 0.5],
        [0.0, 2.0, 0.0, 0.25],
        [0.0, 0.0, 3.0, 1.0],
    ],
    dtype=np.float32,
)


class FakeLocation:
    def __init__(self, x=0.0, y=0.0, z=0.0):
        self.x = x
        self.y = y
        self.z = z


class FakeTransform:
    """Translation plus yaw in degrees, enough to exercise get_matrix()."""

    def __init__(self, x=0.0, y=0.0, z=0.0, yaw=0.0):
        self.location = FakeLocation(x, y, z)
        self.yaw = yaw

    def get_matrix(self):
        c = np.cos(np.radians(self.yaw))
        s = np.sin(np.radians(self.yaw))
        loc = self.location
        return [
            [c, -s, 0.0, loc.x],
            [s, c, 0.0, loc.y],
            [0.0, 0.0, 1.0, loc.z],
            [0.0, 0.0, 0.0, 1.0],
        ]


class FakeWaypoint:
    def __init__(self, x, y, z=0.0, yaw=0.0):
        self.transform = FakeTransform(x, y, z, yaw)


class FakeMeasurement:
    def __init__(self, frame, transform, points=LOCAL_POINTS):
        self.frame = frame
        self.transform = transform
        self.raw_data = points.tobytes()


class FakeBlueprint:
    def __init__(self, blueprint_id):
        self.id = blueprint_id
        self.attributes = {}

    def set_attribute(self, key, value):
        self.attributes[key] = value


class FakeBlueprintLibrary:
    def find(self, name):
        return FakeBlueprint(name)


class FakeSensor:
    def __init__(self, blueprint, transform):
        self.blueprint = blueprint
        self.transform = transform
        self.callback = None
        self.silent = False
        self.fail_on_stop = False
        self.stopped = False
        self.destroyed = False

    def listen(self, callback):
        self.callback = callback

    def set_transform(self, transform):
        self.transform = transform

    def stop(self):
        if self.fail_on_stop:
            raise RuntimeError("sensor stream already closed")
        self.stopped = True
        self.callback = None

    def destroy(self):
        self.destroyed = True


class FakeMap:
    def __init__(self, name="Carla/Maps/Town01", waypoints=None, opendrive="<OpenDRIVE/>"):
        self.name = name
        self.waypoints = waypoints if waypoints is not None else []
        self.opendrive = opendrive
        self.requested_distance = None

    def to_opendrive(self):
        return self.opendrive

    def generate_waypoints(self, distance):
        self.requested_distance = distance
        return list(self.waypoints)


class FakeSettings:
    def __init__(self):
        self.synchronous_mode = False
        self.fixed_delta_seconds = None


class FakeWorld:
    def __init__(self, carla_map=None, stale_frames=0):
        self.map = carla_map if carla_map is not None else FakeMap()
        self.settings = FakeSettings()
        self.applied_settings = []
        self.sensors = []
        self.frame = 0
        # Measurements from frames before the tick are delivered first
        self.stale_frames = stale_frames

    def get_map(self):
        return self.map

    def get_settings(self):
        settings = FakeSettings()
        settings.synchronous_mode = self.settings.synchronous_mode
        settings.fixed_delta_seconds = self.settings.fixed_delta_seconds
        return settings

    def apply_settings(self, settings):
        self.settings = settings
        self.applied_settings.append(
            (settings.synchronous_mode, settings.fixed_delta_seconds)
        )

    def get_blueprint_library(self):
        return FakeBlueprintLibrary()

    def try_spawn_actor(self, blueprint, transform, attach_to=None):
        sensor = FakeSensor(blueprint, transform)
        self.sensors.append(sensor)
        return sensor

    def tick(self):
        self.frame += 1
        for sensor in self.sensors:
            if sensor.callback is None or sensor.silent:
                continue
            for stale in range(self.stale_frames, 0, -1):
                sensor.callback(
                    FakeMeasurement(self.frame - stale, FakeTransform(1e6, 1e6, 1e6))
                )
            sensor.callback(FakeMeasurement(self.frame, sensor.transform))
        return self.frame


class FakeWorldManager:
    """The subset of WorldManager used by the scanner, without importing carla."""

    def __init__(self, world):
        self.world = world
        self.map = world.get_map()

    def tick(self):
        return self.world.tick()

    def get_blueprint(self, name):
        return self.world.get_blueprint_library().find(name)

    def spawn_actor(self, blueprint, transform=None):
        return self.world.try_spawn_actor(blueprint, transform)


class FakeClient:
    def __init__(self, world=None, error=None):
        self.world = world
        self.error = error
        self.loaded = None
        self.timeout = None

    def set_timeout(self, timeout):
        self.timeout = timeout

    def get_world(self):
        if self.error is not None:
            raise self.error
        return self.world

    def load_world(self, name):
        if self.error is not None:
            raise self.error
        self.loaded = name
        return self.world


@pytest.fixture
def waypoints():
    return [
        FakeWaypoint(0.0, 0.0),
        FakeWaypoint(10.0, 0.0),
        FakeWaypoint(20.0, 0.0, yaw=90.0),
        FakeWaypoint(30.0, 5.0),
        FakeWaypoint(40.0, 5.0, z=1.0),
    ]


@pytest.fixture
def world(waypoints):
    return FakeWorld(FakeMap(waypoints=waypoints))


@pytest.fixture
def world_manager(world):
    return FakeWorldManager(world)
