from .pde import BlackScholes, bs_pde_coeffs

__all__ = ["BlackScholes", "bs_pde_coeffs"]
