import carla

from misc.constant import CLIENT_TIMEOUT, FIXED_DELTA_SECONDS


def connect(host, port, timeout=CLIENT_TIMEOUT):
    client = carla.Client(host, port)
    client.set_timeout(timeout)
    return client


def format_map_name(map_name):
    if "/" in map_name:
        map_name = map_name.rsplit("/", 1)[-1]
    return map_name


class WorldManager:
    def __init__(self, world=None):
        self.world = world
        self.map = world.get_map() if world is not None else None

    @classmethod
    def load(cls, client, world_name=None):
        """Load `world_name` on the server, or attach to the running world when it is None.

        The client raises RuntimeError when the server is unreachable or the
        world name is unknown.
        """
        if world_name is not None:
            world = client.load_world(world_name)
        else:
            world = client.get_world()
        return cls(world)

    @property
    def map_name(self):
        return format_map_name(self.map.name)

    def set_sync_mode(self, sync, fixed_delta_seconds=FIXED_DELTA_SECONDS):
        settings = self.world.get_settings()
        settings.synchronous_mode = sync
        if sync:
            settings.fixed_delta_seconds = fixed_delta_seconds
        else:
            settings.fixed_delta_seconds = None
        self.world.apply_settings(settings)

    def tick(self):
        return self.world.tick()

    def generate_waypoints(self, distance):
        return list(self.map.generate_waypoints(distance))

    def get_blueprint(self, name):
        return self.world.get_blueprint_library().find(name)

    def spawn_actor(self, blueprint, transform=None):
        if transform is None:
            transform = carla.Transform()
        actor = self.world.try_spawn_actor(blueprint, transform)
        if actor is None:
            raise RuntimeError(f"Simulator refused to spawn {blueprint.id}")
        return actor
