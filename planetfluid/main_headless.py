#!/usr/bin/env python3
"""
Headless runner for the planet fluid sandbox.
Runs the simulation for a number of ticks and reports performance.
"""

import argparse
import time
from typing import Optional, Sequence

import numpy as np

import planetfluid
from planetfluid.core.parameters import SimulationParameters
from planetfluid.core.state import FluidSandbox
from planetfluid.scenarios.planet import PRESETS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Planet fluid sandbox (headless)")
    parser.add_argument("--particles", type=int, default=None,
                        help="Particle count (overrides the preset)")
    parser.add_argument("--ticks", type=int, default=100, help="Number of ticks to run")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--backend", choices=["numpy", "numba", "auto"], default="auto")
    parser.add_argument("--time-scale", type=float, default=None)
    parser.add_argument("--preset", choices=sorted(PRESETS), default="default")
    parser.add_argument("--scenario", default=None, help="Scenario token to load")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    params = SimulationParameters.from_preset(args.preset)
    if args.particles is not None:
        params, _ = params.with_value("particleCount", args.particles)
    if args.time_scale is not None:
        params, _ = params.with_value("timeScale", args.time_scale)

    # Set backend
    if args.backend == "auto":
        backend = planetfluid.auto_select_backend(params.particle_count)
        print(f"Auto-selected {backend.upper()} backend for {params.particle_count} particles")
    elif planetfluid.set_backend(args.backend):
        backend = args.backend
    else:
        print(f"Warning: Backend '{args.backend}' not available")
        backend = None

    sandbox = FluidSandbox(params, seed=args.seed, backend=backend, log_level=args.log_level)
    if args.scenario is not None and not sandbox.apply_scenario(args.scenario):
        print("Warning: scenario token rejected, running with preset parameters")

    # Print info
    print("\nSimulation info:")
    print(f"  Backend: {backend or planetfluid.get_backend()}")
    print(f"  Preset: {args.preset}")
    print(f"  Particles: {sandbox.particles.n_particles}")
    print(f"  Planet radius: {sandbox.parameters.planet_radius}")
    print(f"  Ticks: {args.ticks}")

    print("\nRunning simulation...")
    tick_times = []
    for tick in range(args.ticks):
        t0 = time.perf_counter()
        sandbox.update()
        tick_times.append(time.perf_counter() - t0)

        if (tick + 1) % 20 == 0:
            avg_time = np.mean(tick_times[-20:])
            print(f"  Tick {tick+1}/{args.ticks}: {avg_time*1000:.1f} ms/tick")

    stats = sandbox.get_statistics()
    print("\nSimulation complete!")
    if tick_times:
        avg_time = np.mean(tick_times)
        print(f"Average: {avg_time*1000:.1f} ms/tick")
        print(f"Total time: {sum(tick_times):.2f} seconds")
    print(f"Mean density: {stats['mean_density']:.2f}")
    print(f"Max speed: {stats['max_speed']:.3f}")
    print(f"Collisions (planet/moon): {stats['planet_collisions']}/{stats['moon_collisions']}")

    if not sandbox.particles.all_finite():
        print("Error: non-finite particle state")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
