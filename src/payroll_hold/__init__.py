"""Payroll hold-and-withdrawal service.

Computes monthly payable salary, retains a hold percentage of each payment,
ages the retained balance and processes withdrawal requests against it.
"""

__version__ = "0.1.0"
