from .constraint_filter import ConstraintFilter, normalize_domain

__all__ = ['ConstraintFilter', 'normalize_domain']
