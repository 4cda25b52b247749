import copy

import numpy as np

from misc.constant import POINT_FIELDS


def measurement_to_array(measurement):
    """Copy a LiDAR measurement into an (N, 4) float32 array of x, y, z, intensity.

    The raw buffer belongs to the simulator and is only valid inside the
    listen callback, hence the copy.
    """
    points = np.frombuffer(measurement.raw_data, dtype=np.dtype("f4"))
    points = copy.deepcopy(points)
    return np.reshape(points, (-1, POINT_FIELDS))


def transform_to_matrix(transform):
    return np.array(transform.get_matrix(), dtype=np.float64)


def to_world_frame(points, matrix):
    world_points = np.empty_like(points)
    xyz = points[:, :3].astype(np.float64)
    world_points[:, :3] = xyz @ matrix[:3, :3].T + matrix[:3, 3]
    world_points[:, 3] = points[:, 3]
    return world_points


def concatenate_points(chunks):
    chunks = [chunk for chunk in chunks if len(chunk) > 0]
    if len(chunks) == 0:
        return np.empty((0, POINT_FIELDS), dtype=np.float32)
    return np.concatenate(chunks, axis=0).astype(np.float32, copy=False)
