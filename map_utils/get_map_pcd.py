import os

import numpy as np
import open3d as o3d


def to_open3d(points):
    cloud = o3d.t.geometry.PointCloud()
    cloud.point.positions = o3d.core.Tensor(
        np.ascontiguousarray(points[:, :3], dtype=np.float32), dtype=o3d.core.float32
    )
    cloud.point["intensity"] = o3d.core.Tensor(
        np.ascontiguousarray(points[:, 3:4], dtype=np.float32), dtype=o3d.core.float32
    )
    return cloud


def get_map_pcd(points, save_path):
    """Write x, y, z, intensity points to a binary PCD file."""
    if len(points) == 0:
        raise ValueError("No LiDAR points were collected, refusing to write an empty point cloud")
    save_dir = os.path.dirname(os.path.abspath(save_path))
    os.makedirs(save_dir, exist_ok=True)
    cloud = to_open3d(points)
    if not o3d.t.io.write_point_cloud(str(save_path), cloud, write_ascii=False, compressed=False):
        raise OSError(f"Failed to write point cloud to {save_path}")
    return cloud
