import os


def get_map_xodr(carla_map, save_path=None):
    opendrive = carla_map.to_opendrive()
    if not opendrive:
        raise ValueError(f"Map {carla_map.name} returned an empty OpenDRIVE description")
    if save_path:
        save_dir = os.path.dirname(os.path.abspath(save_path))
        os.makedirs(save_dir, exist_ok=True)
        with open(save_path, "w", encoding="utf-8") as file:
            file.write(opendrive)
    return opendrive
