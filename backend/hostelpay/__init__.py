"""HostelPay - hostel fee collection and expense tracking"""

__version__ = "1.0.0"
