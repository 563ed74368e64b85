"""
Physics validation tests for the force model.

Tests:
- Density summation and equation of state
- Pressure and viscosity pair forces
- Body gravity
- Surface tension, stretch resistance and cohesion
- Single-particle net force against the batched computation
"""

import numpy as np
import pytest

import planetfluid
from planetfluid.core.bodies import RigidBody, create_bodies
from planetfluid.core.kernel_vectorized import SPHKernels
from planetfluid.core.spatial_hash_vectorized import build
from planetfluid.physics.cohesion_vectorized import compute_surface_tension_forces
from planetfluid.physics.density_vectorized import compute_density_vectorized, compute_pressure_linear
from planetfluid.physics.forces_vectorized import (
    compute_pressure_forces_vectorized,
    compute_sph_forces_vectorized,
    compute_viscous_forces_vectorized,
)
from planetfluid.physics.gravity_vectorized import GRAVITY_VISUAL_SCALE, compute_gravity_forces
from planetfluid.scenarios.planet import generate_shell_positions


def pairs_for(positions, radius):
    return build(positions, radius).find_pairs(positions, radius)


class TestDensity:
    """Direct density summation."""

    def test_isolated_particle_has_self_density(self, make_particles):
        particles = make_particles([[0.0, 0.0, 0.0]], mass=2.0)
        kernel = SPHKernels(0.6)
        compute_density_vectorized(particles, pairs_for(particles.position, 0.6), kernel)
        assert particles.density[0] == pytest.approx(2.0 * kernel.W_self())

    def test_pair_density(self, make_particles):
        particles = make_particles([[0.0, 0.0, 0.0], [0.3, 0.0, 0.0]])
        kernel = SPHKernels(0.6)
        compute_density_vectorized(particles, pairs_for(particles.position, 0.6), kernel)
        expected = kernel.W_self() + float(kernel.W_poly6(0.3))
        np.testing.assert_allclose(particles.density, [expected, expected])

    def test_pairs_beyond_support_ignored(self, make_particles):
        particles = make_particles([[0.0, 0.0, 0.0], [0.7, 0.0, 0.0]])
        kernel = SPHKernels(0.6)
        # Pairs found with a wider radius than the kernel support
        compute_density_vectorized(particles, pairs_for(particles.position, 1.0), kernel)
        np.testing.assert_allclose(particles.density, kernel.W_self())

    def test_linear_equation_of_state(self, make_particles):
        particles = make_particles(np.zeros((3, 3)))
        particles.density[:] = [100.0, 300.0, 500.0]
        compute_pressure_linear(particles, gas_constant=20.0, rest_density=300.0)
        np.testing.assert_allclose(particles.pressure, [-4000.0, 0.0, 4000.0])


class TestPairForces:
    """Pressure and viscosity."""

    @pytest.fixture
    def pair(self, make_particles):
        particles = make_particles([[0.0, 0.0, 0.0], [0.3, 0.0, 0.0]])
        particles.density[:] = 1.0
        return particles

    def test_positive_pressure_repels(self, pair):
        pair.pressure[:] = 10.0
        kernel = SPHKernels(0.6)
        forces = compute_pressure_forces_vectorized(pair, pairs_for(pair.position, 0.6), kernel)

        expected = float(kernel.spiky_gradient(0.3)) * 1.0 * 20.0 / 2.0
        assert forces[0, 0] == pytest.approx(expected)
        assert forces[0, 0] < 0.0
        assert forces[1, 0] > 0.0
        np.testing.assert_allclose(forces.sum(axis=0), 0.0, atol=1e-12)

    def test_negative_pressure_attracts(self, pair):
        pair.pressure[:] = -10.0
        forces = compute_pressure_forces_vectorized(pair, pairs_for(pair.position, 0.6), SPHKernels(0.6))
        assert forces[0, 0] > 0.0
        assert forces[1, 0] < 0.0

    def test_viscosity_drags_toward_neighbor_velocity(self, pair):
        pair.velocity[1] = [1.0, 0.0, 0.0]
        kernel = SPHKernels(0.6)
        forces = compute_viscous_forces_vectorized(pair, pairs_for(pair.position, 0.6), kernel, 2.0)

        expected = float(kernel.viscosity_laplacian(0.3)) * 2.0
        np.testing.assert_allclose(forces[0], [expected, 0.0, 0.0])
        np.testing.assert_allclose(forces[1], [-expected, 0.0, 0.0])

    def test_coincident_particles_skipped(self, make_particles):
        particles = make_particles([[1.0, 1.0, 1.0], [1.0, 1.0, 1.0]])
        particles.density[:] = 1.0
        particles.pressure[:] = 5.0
        forces = compute_sph_forces_vectorized(particles, pairs_for(particles.position, 0.6),
                                               SPHKernels(0.6), 1.0)
        assert np.all(np.isfinite(forces))
        np.testing.assert_allclose(forces, 0.0)

    def test_no_neighbors(self, make_particles):
        particles = make_particles([[0.0, 0.0, 0.0], [5.0, 0.0, 0.0]])
        particles.density[:] = 1.0
        forces = compute_sph_forces_vectorized(particles, pairs_for(particles.position, 0.6),
                                               SPHKernels(0.6), 1.0)
        np.testing.assert_allclose(forces, 0.0)


class TestGravity:
    """Inverse-square attraction toward the bodies."""

    @pytest.fixture
    def body(self):
        return RigidBody(position=np.zeros(3), radius=1.0, mass=1000.0)

    def test_inverse_square(self, body):
        forces = compute_gravity_forces(np.array([[10.0, 0.0, 0.0]]), [body], 1.0)
        expected = GRAVITY_VISUAL_SCALE * 1000.0 / 100.0
        np.testing.assert_allclose(forces[0], [-expected, 0.0, 0.0])

    def test_minimum_distance(self, body):
        forces = compute_gravity_forces(np.array([[0.0, 0.1, 0.0]]), [body], 1.0)
        expected = GRAVITY_VISUAL_SCALE * 1000.0 / 0.25
        np.testing.assert_allclose(forces[0], [0.0, -expected, 0.0])

    def test_particle_at_centre_gets_no_force(self, body):
        forces = compute_gravity_forces(np.zeros((1, 3)), [body], 1.0)
        np.testing.assert_array_equal(forces, 0.0)

    def test_uniform_field(self, body):
        body.mass = 0.0
        forces = compute_gravity_forces(np.array([[3.0, 4.0, 0.0]]), [body], 1.0, uniform_gravity=-9.81)
        np.testing.assert_allclose(forces[0], [0.0, -9.81, 0.0])

    def test_two_bodies_superpose(self, default_params):
        planet, moon = create_bodies(default_params)
        point = np.array([[0.0, 8.0, 0.0]])
        total = compute_gravity_forces(point, [planet, moon], 1.0)
        separate = (compute_gravity_forces(point, [planet], 1.0)
                    + compute_gravity_forces(point, [moon], 1.0))
        np.testing.assert_allclose(total, separate)


class TestSurfaceTension:
    """Short-range cohesion."""

    @pytest.mark.parametrize("distance,expected_x", [
        # (1 - 0.5) * 1 + cohesion 0.4 * 0.5
        (0.4, 0.7),
        # (1 - 0.9) * 1 + 2 * (0.72 - 0.64) / 0.16 + cohesion 0.72 * 0.5
        (0.72, 1.46),
        # Outside the radius
        (0.9, 0.0),
    ])
    def test_two_particle_pull(self, distance, expected_x):
        positions = np.array([[0.0, 0.0, 0.0], [distance, 0.0, 0.0]])
        forces = compute_surface_tension_forces(positions, pairs_for(positions, 1.0),
                                                radius=0.8, strength=1.0,
                                                resistance=2.0, cohesion=0.5)
        np.testing.assert_allclose(forces[0], [expected_x, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(forces[1], [-expected_x, 0.0, 0.0], atol=1e-12)

    def test_cohesion_pulls_toward_centroid(self):
        positions = np.array([[0.0, 0.0, 0.0], [0.3, 0.0, 0.0], [0.0, 0.3, 0.0]])
        forces = compute_surface_tension_forces(positions, pairs_for(positions, 0.8),
                                                radius=0.8, strength=0.0,
                                                resistance=0.0, cohesion=1.0)
        np.testing.assert_allclose(forces[0], [0.15, 0.15, 0.0])


class TestNetForce:
    """Single-particle evaluation agrees with the batched path."""

    def test_matches_batched(self, default_params):
        params = default_params
        planet, moon = create_bodies(params)
        rng = np.random.default_rng(3)
        positions = generate_shell_positions(rng, 300, planet.position, params.planet_radius,
                                             params.fluid_height, 0.8)
        particles = planetfluid.ParticleArrays.allocate(300)
        particles.position[:] = positions
        particles.velocity[:] = rng.normal(scale=0.1, size=(300, 3))

        radius = params.interaction_radius
        grid = build(particles.position, radius)
        pairs = grid.find_pairs(particles.position, radius)
        kernel = SPHKernels(params.smoothing_length)

        planetfluid.compute_density(particles, pairs, kernel, backend="numpy")
        planetfluid.compute_pressure(particles, params.gas_constant, params.rest_density)
        batched = planetfluid.compute_net_forces(particles, pairs, planet, moon, params,
                                                 kernel=kernel, backend="numpy")

        for index in (0, 17, 150, 299):
            neighbors = grid.query_neighbors(particles.position[index], radius)
            single = planetfluid.net_force(particles, index, neighbors, planet, moon, params,
                                           backend="numpy")
            np.testing.assert_allclose(single, batched[index], rtol=1e-9, atol=1e-9)

    def test_stored_in_particles(self, default_params, make_particles):
        planet, moon = create_bodies(default_params)
        particles = make_particles([[0.0, 6.0, 0.0], [0.2, 6.0, 0.0]])
        pairs = pairs_for(particles.position, default_params.interaction_radius)
        planetfluid.compute_density(particles, pairs, SPHKernels(default_params.smoothing_length))
        planetfluid.compute_pressure(particles, default_params.gas_constant, default_params.rest_density)
        forces = planetfluid.compute_net_forces(particles, pairs, planet, moon, default_params)
        np.testing.assert_array_equal(particles.force, forces)
        assert np.all(np.isfinite(forces))
