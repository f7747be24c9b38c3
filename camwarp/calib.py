"""Camera models from calibration files"""

import json

import numpy as np

from .fisheye import FisheyeCamera
from .pinhole import PinholeCamera


def calib2np(calib):
    """
    Convert lists to np.array in calib
    """
    new_calib = {}
    for key, val in calib.items():
        if isinstance(val, dict):
            new_calib.update({key: calib2np(val)})
        else:
            new_calib.update({key: np.array(val)})
    return new_calib


def open_calib(path):
    """Read calib file"""
    with open(path, "r", encoding="utf-8") as f:
        calib_ = json.load(f)
    return calib2np(calib_)


def camera_from_calib(calib, fisheye=False):
    """Create a camera model from calib with K[3x3], R[3x3], T[3x1] (world2cam)

    The camera center is C = -R^T T. ``distortion`` is optional and holds
    [k1, k2, k3, k4] for fisheye or [k1, k2, k3, k4, p1, p2] for pinhole cameras.
    """
    K = np.asarray(calib["K"], dtype=np.float64)
    R = np.asarray(calib.get("R", np.eye(3)), dtype=np.float64)
    T = np.asarray(calib.get("T", np.zeros(3)), dtype=np.float64).reshape(3)
    center = -R.T @ T
    distortion = calib.get("distortion")
    if fisheye:
        return FisheyeCamera(K, distortion=distortion, R=R, center=center)
    return PinholeCamera(K, R=R, center=center, distortion=distortion)

