"""Propagation of forward tracks to the vertex, DCA and absorber planes."""

from .base import PropagationError, PropagatorBase
from .factories import propagator_factory
from .quadratic import QuadraticPropagator
