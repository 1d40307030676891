from decimal import Decimal
from typing import Dict, Any

from bookkeeper.config import settings
from bookkeeper.tools.money import EPSILON, ZERO, to_money

class VATCalculator:
    def __init__(self, rate: float = None):
        # Nepal standard VAT rate
        self.rate = Decimal(str(rate if rate is not None else settings.VAT_RATE))
        self.TOLERANCE = EPSILON

    def vat_for(self, taxable_amount) -> Decimal:
        return to_money(to_money(taxable_amount) * self.rate)

    def validate_bill(self, taxable_amount, vat_amount, total_amount, exempt: bool = False) -> Dict[str, Any]:
        """
        Validates VAT arithmetic on a purchase/sales bill.
        Exempt and zero-rated bills must carry no VAT; every other bill is
        checked against the standard rate.
        Returns a dict with 'valid' (bool) and 'details' (str).
        """
        taxable = to_money(taxable_amount)
        vat = to_money(vat_amount)
        total = to_money(total_amount)

        if exempt:
            if vat != ZERO:
                return {"valid": False, "details": f"Exempt bills carry no VAT, but got {vat}"}
        else:
            expected_vat = self.vat_for(taxable)
            if abs(vat - expected_vat) > self.TOLERANCE:
                return {
                    "valid": False,
                    "details": f"VAT amount should be {expected_vat} ({self.rate * 100:.0f}% of taxable amount), but got {vat}"
                }

        expected_total = taxable + vat
        if abs(total - expected_total) > self.TOLERANCE:
            return {
                "valid": False,
                "details": f"Total amount should be {expected_total} (taxable + VAT), but got {total}"
            }

        if exempt:
            return {"valid": True, "details": "Zero Rated / Exempt"}
        return {"valid": True, "details": f"Matches Standard Rate ({self.rate * 100:.0f}%)"}

vat_calculator = VATCalculator()
