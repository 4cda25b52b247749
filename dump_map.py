import argparse
import os
import sys
from typing import Optional

from colorama import Fore, Style

from manager import WorldManager, connect
from map_utils.get_map_pcd import get_map_pcd
from map_utils.get_map_xodr import get_map_xodr
from map_utils.lidar_scan import LidarConfig, LidarScanner
from misc.constant import (
    CLIENT_TIMEOUT,
    DEFAULT_HOST,
    DEFAULT_PORT,
    LIDAR,
    SAMPLING_DISTANCE,
    SENSOR_TIMEOUT,
)


def non_negative_int(value):
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value}")
    return number


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Dump the map of a running CARLA world to OpenDRIVE and PCD files"
    )
    parser.add_argument(
        "-w",
        "--world",
        type=str,
        default=None,
        help="The world to load, e.g. Town01 (default: the world currently running)",
    )
    parser.add_argument("--host", type=str, default=DEFAULT_HOST, help="The simulator host")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="The simulator port")
    parser.add_argument(
        "-t",
        "--timeout",
        type=float,
        default=CLIENT_TIMEOUT,
        help="The client timeout in seconds",
    )
    parser.add_argument(
        "-d",
        "--sampling-distance",
        type=float,
        default=SAMPLING_DISTANCE,
        help="The distance in meters between two scanned waypoints",
    )
    parser.add_argument(
        "-r",
        "--lidar-range",
        type=float,
        default=LIDAR["range"],
        help="The LiDAR range in meters",
    )
    parser.add_argument(
        "-f",
        "--rotation-frequency",
        type=float,
        default=LIDAR["rotation_frequency"],
        help="The LiDAR rotation frequency in Hz",
    )
    parser.add_argument(
        "-p",
        "--points-per-second",
        type=int,
        default=LIDAR["points_per_second"],
        help="The number of LiDAR points per second",
    )
    parser.add_argument(
        "-c",
        "--lidar-channels",
        type=int,
        default=LIDAR["channels"],
        help="The number of LiDAR channels",
    )
    parser.add_argument(
        "--sensor-timeout",
        type=float,
        default=SENSOR_TIMEOUT,
        help="The time in seconds to wait for a LiDAR measurement",
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=non_negative_int,
        default=0,
        help="The number of LiDARs scanning in parallel, 0 for one per CPU core",
    )
    parser.add_argument("output_xodr_file", type=str, help="The output OpenDRIVE file")
    parser.add_argument("output_pcd_file", type=str, help="The output PCD file")
    return parser.parse_args(argv)


def resolve_num_workers(jobs):
    max_workers = os.cpu_count() or 1
    if jobs == 0:
        return max_workers
    return min(jobs, max_workers)


def dump_map(
    output_xodr_file: str,
    output_pcd_file: str,
    world: Optional[str] = None,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    timeout: float = CLIENT_TIMEOUT,
    sampling_distance: float = SAMPLING_DISTANCE,
    lidar_config: Optional[LidarConfig] = None,
    jobs: int = 0,
    sensor_timeout: float = SENSOR_TIMEOUT,
):
    num_workers = resolve_num_workers(jobs)
    client = connect(host, port, timeout)
    world_manager = WorldManager.load(client, world)
    print(f"{Style.BRIGHT}Map{Style.RESET_ALL}: {world_manager.map_name}")

    scanner = LidarScanner(world_manager, num_workers, lidar_config, timeout=sensor_timeout)
    world_manager.set_sync_mode(True)
    try:
        get_map_xodr(world_manager.map, output_xodr_file)
        print(f"{Style.BRIGHT}OpenDRIVE{Style.RESET_ALL}: {output_xodr_file}")

        waypoints = world_manager.generate_waypoints(sampling_distance)
        print(
            f"{Style.BRIGHT}Waypoints{Style.RESET_ALL}: {len(waypoints)} "
            f"scanned by {num_workers} LiDARs"
        )
        scanner.spawn()
        points = scanner.scan(waypoints)

        get_map_pcd(points, output_pcd_file)
        print(f"{Style.BRIGHT}Point cloud{Style.RESET_ALL}: {output_pcd_file}")
    finally:
        try:
            scanner.destroy()
        finally:
            world_manager.set_sync_mode(False)

    return {
        "map_name": world_manager.map_name,
        "num_waypoints": len(waypoints),
        "num_points": len(points),
    }


def main(argv=None):
    args = parse_args(argv)
    lidar_config = LidarConfig(
        channels=args.lidar_channels,
        points_per_second=args.points_per_second,
        rotation_frequency=args.rotation_frequency,
        range=args.lidar_range,
    )
    try:
        summary = dump_map(
            output_xodr_file=args.output_xodr_file,
            output_pcd_file=args.output_pcd_file,
            world=args.world,
            host=args.host,
            port=args.port,
            timeout=args.timeout,
            sampling_distance=args.sampling_distance,
            lidar_config=lidar_config,
            jobs=args.jobs,
            sensor_timeout=args.sensor_timeout,
        )
    except (RuntimeError, OSError, ValueError) as e:
        print(f"{Fore.RED}Failed to dump map{Style.RESET_ALL}: {e}", file=sys.stderr)
        return 1

    print(
        f"{Fore.GREEN}Done{Style.RESET_ALL}: {summary['num_points']} points "
        f"from {summary['num_waypoints']} waypoints of {summary['map_name']}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
