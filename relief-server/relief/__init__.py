"""Relief ledger server: aid distribution and conditional payments on Stellar."""

__version__ = "0.3.0"
