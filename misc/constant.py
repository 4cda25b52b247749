DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 2000
CLIENT_TIMEOUT = 5.0

# Synchronous mode used while the LiDARs sweep the map
FIXED_DELTA_SECONDS = 0.05

SAMPLING_DISTANCE = 10.0
SENSOR_TIMEOUT = 10.0

LIDAR_BLUEPRINT = "sensor.lidar.ray_cast"
LIDAR = {
    "channels": 32,
    "points_per_second": 90000,
    "rotation_frequency": 10.0,
    "range": 20.0,
}

# x, y, z, intensity
POINT_FIELDS = 4
