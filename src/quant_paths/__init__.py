"""quant_paths: sample-path generation for diffusion, jump and fractional processes."""

__version__ = "0.1.0"
__all__ = ["errors", "config", "sde"]
