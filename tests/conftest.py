"""Shared star fixtures for the StellarCast test suite."""

import pytest

from stellarcast.data.source import StarRecord


@pytest.fixture
def sirius():
    """Sirius A astrometry (Gaia-like values, no errors supplied)."""
    return StarRecord(
        name="Sirius",
        ra=101.287155,
        dec=-16.716116,
        parallax=379.21,
        pmra=-546.01,
        pmdec=-1223.07,
        radial_velocity=-7.6,
    )


@pytest.fixture
def sirius_dict():
    """Sirius as a camelCase payload, the shape used by JSON clients."""
    return {
        'name': 'Sirius',
        'ra': 101.287155,
        'dec': -16.716116,
        'parallax': 379.21,
        'pmra': -546.01,
        'pmdec': -1223.07,
        'radialVelocity': -7.6,
    }


@pytest.fixture
def static_binary():
    """Binary with no barycentric motion: P=50 yr, e=0.5, i=45 deg."""
    return StarRecord(
        name="Static Binary",
        ra=150.0,
        dec=20.0,
        parallax=100.0,
        pmra=0.0,
        pmdec=0.0,
        radial_velocity=0.0,
        has_orbital_motion=True,
        orbital_period=50.0,
        eccentricity=0.5,
        inclination=45.0,
        argument_of_periastron=30.0,
        system_mass=2.0,
    )
