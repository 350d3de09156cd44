from .availability import AvailabilityResult, DnsWhoisAvailabilityChecker, MockAvailabilityChecker

__all__ = ['AvailabilityResult', 'DnsWhoisAvailabilityChecker', 'MockAvailabilityChecker']
