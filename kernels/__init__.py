"""
Kernels package for the FLIP / level-set liquid simulation stages.
"""
from .advect import advect_scalar, advect_level_set, advect_velocity, advect_particles
from .apply_force import apply_constant_force, apply_field_force
from .compute_rhs_divergence import compute_rhs_divergence, compute_divergence
from .gauss_seidel_sor_pressure_iteration import gauss_seidel_sor_pressure_iteration
from .jacobi_pressure_iteration import jacobi_pressure_iteration
from .pressure_projection import (
    MIN_THETA,
    compute_u_face_weights,
    compute_v_face_weights,
    copy_pressure_to_old,
    pressure_projection_u,
    pressure_projection_v,
    set_solid_faces,
)
from .bubbles import accumulate_bubble_terms, update_bubble_pressure, zero_bubble_terms, label_bubbles
from .surface_tension import compute_curvature
from .viscosity import classify_u_faces, classify_v_faces, viscosity_u_iteration, viscosity_v_iteration
from .p2g import p2g, normalize_splat
from .g2p import g2p
from .extrapolate import extrapolate, extrapolate_scalar, extrapolate_velocity, liquid_cells, liquid_faces, zero_invalid

__all__ = [
    'advect_scalar',
    'advect_level_set',
    'advect_velocity',
    'advect_particles',
    'apply_constant_force',
    'apply_field_force',
    'compute_rhs_divergence',
    'compute_divergence',
    'gauss_seidel_sor_pressure_iteration',
    'jacobi_pressure_iteration',
    'MIN_THETA',
    'compute_u_face_weights',
    'compute_v_face_weights',
    'copy_pressure_to_old',
    'pressure_projection_u',
    'pressure_projection_v',
    'set_solid_faces',
    'accumulate_bubble_terms',
    'update_bubble_pressure',
    'zero_bubble_terms',
    'label_bubbles',
    'compute_curvature',
    'classify_u_faces',
    'classify_v_faces',
    'viscosity_u_iteration',
    'viscosity_v_iteration',
    'p2g',
    'normalize_splat',
    'g2p',
    'extrapolate',
    'extrapolate_scalar',
    'extrapolate_velocity',
    'liquid_cells',
    'liquid_faces',
    'zero_invalid',
]
