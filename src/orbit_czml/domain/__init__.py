# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Domain layer: time spans, orbits, attitude, geometric detectors and the
visibility reconciler.

Only stdlib and numpy are imported here.
"""
