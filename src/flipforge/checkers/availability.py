"""Availability lookups for scored domain candidates."""

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import dns.asyncresolver
import dns.exception
import dns.resolver
import whois
from whois.exceptions import WhoisDomainNotFoundError

logger = logging.getLogger(__name__)

BASE_PRICES = {
    'io': 39.99,
    'ai': 79.99,
}
DEFAULT_PRICE = 10.99
REGISTRAR = 'Namecheap'
BUY_URL = 'https://www.namecheap.com/domains/registration/results/?domain={domain}'


@dataclass
class AvailabilityResult:
    """Availability and registration price for one domain."""
    domain: str
    available: Optional[bool]
    method: str
    price: Optional[float] = None
    currency: str = 'USD'
    premium: bool = False
    registrar: str = REGISTRAR
    buy_url: str = ''
    checked_at: str = field(default_factory=lambda: datetime.now().isoformat())
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'domain': self.domain,
            'available': self.available,
            'price': self.price,
            'currency': self.currency,
            'premium': self.premium,
            'registrar': self.registrar,
            'buyUrl': self.buy_url,
            'checkedAt': self.checked_at,
            'method': self.method,
        }
        if self.error:
            result['error'] = self.error
        return result


def with_tld(name: str, tld: str) -> str:
    """Append the TLD unless the name already carries one."""
    return name if '.' in name else f"{name}.{tld.lstrip('.')}"


class MockAvailabilityChecker:
    """Simulated registrar lookup with reproducible results per seed."""

    method = 'mock'

    def __init__(self, seed: Optional[int] = None, availability_rate: float = 0.3, delay: float = 0.0):
        self._random = random.Random(seed)
        self.availability_rate = availability_rate
        self.delay = delay

    def _price(self, tld: str) -> float:
        price = BASE_PRICES.get(tld, DEFAULT_PRICE)
        price += self._random.random() * 2 - 1
        return round(price, 2)

    def check_single(self, domain: str) -> AvailabilityResult:
        if self.delay:
            time.sleep(self._random.random() * self.delay)

        available = self._random.random() < self.availability_rate
        tld = domain.rsplit('.', 1)[-1].lower()
        price = self._price(tld)

        return AvailabilityResult(
            domain=domain,
            available=available,
            method=self.method,
            price=price if available else None,
            buy_url=BUY_URL.format(domain=domain),
        )

    def check_batch(self, domains: Sequence[str]) -> List[AvailabilityResult]:
        return [self.check_single(d) for d in domains]


class DnsWhoisAvailabilityChecker:
    """DNS pre-filter followed by WHOIS verification.

    Domains that resolve are taken. Domains with no DNS records are only
    possibly free, so they are confirmed against WHOIS one at a time.
    """

    method = 'whois'
    RATE_LIMIT_PATTERNS = ['rate limit', 'too many requests', 'quota exceeded', 'try again later', 'blocked']

    def __init__(
        self,
        dns_timeout: float = 3.0,
        max_concurrent: int = 10,
        rate_limit_delay: float = 1.5,
        verify_with_whois: bool = True
    ):
        self.dns_timeout = dns_timeout
        self.max_concurrent = max_concurrent
        self.rate_limit_delay = rate_limit_delay
        self.verify_with_whois = verify_with_whois
        self._last_whois_time = 0.0

    async def _resolve(self, domain: str, semaphore: asyncio.Semaphore) -> Tuple[str, Optional[bool]]:
        """Return (domain, possibly_available); None when DNS gave no answer either way."""
        async with semaphore:
            resolver = dns.asyncresolver.Resolver()
            resolver.timeout = self.dns_timeout
            resolver.lifetime = self.dns_timeout
            try:
                await resolver.resolve(domain, 'A')
                return domain, False
            except (dns.resolver.NXDOMAIN, dns.resolver.NoNameservers):
                return domain, True
            except dns.resolver.NoAnswer:
                return domain, False
            except dns.exception.DNSException:
                return domain, None

    async def _dns_batch(self, domains: Sequence[str]) -> Dict[str, Optional[bool]]:
        semaphore = asyncio.Semaphore(self.max_concurrent)
        results = await asyncio.gather(*(self._resolve(d, semaphore) for d in domains))
        return dict(results)

    def _wait_for_rate_limit(self):
        elapsed = time.time() - self._last_whois_time
        if elapsed < self.rate_limit_delay:
            time.sleep(self.rate_limit_delay - elapsed)
        self._last_whois_time = time.time()

    def _whois(self, domain: str) -> Tuple[Optional[bool], Optional[str]]:
        self._wait_for_rate_limit()
        try:
            w = whois.whois(domain)
        except WhoisDomainNotFoundError:
            return True, None
        except Exception as e:
            message = str(e).lower()
            if any(p in message for p in self.RATE_LIMIT_PATTERNS):
                logger.warning("WHOIS rate limited for %s", domain)
                return None, str(e)
            if any(x in message for x in ['no match', 'not found', 'no entries', 'domain not found']):
                return True, None
            return None, str(e)
        return w.domain_name is None, None

    def check_batch(self, domains: Sequence[str]) -> List[AvailabilityResult]:
        dns_results = asyncio.run(self._dns_batch(domains))
        results = []

        for domain in domains:
            possibly_available = dns_results.get(domain)
            if possibly_available is not True or not self.verify_with_whois:
                results.append(AvailabilityResult(
                    domain=domain,
                    available=possibly_available,
                    method='dns',
                    buy_url=BUY_URL.format(domain=domain),
                ))
                continue

            available, error = self._whois(domain)
            if error:
                logger.debug("WHOIS lookup for %s failed: %s", domain, error)
            results.append(AvailabilityResult(
                domain=domain,
                available=available,
                method=self.method,
                buy_url=BUY_URL.format(domain=domain),
                error=error,
            ))

        return results

    def check_single(self, domain: str) -> AvailabilityResult:
        return self.check_batch([domain])[0]
