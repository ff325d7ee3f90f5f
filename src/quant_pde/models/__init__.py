"""Model-specific pieces: closed forms and PDE coefficients."""
