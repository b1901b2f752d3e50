"""
Fragment-shader style Mandelbrot evaluation using PyTorch.

This module evaluates the escape-time math the way a fragment shader does:
every fragment of the target is computed independently from three uniforms,
- max_iterations: iteration ceiling (int)
- complex_plane: (min.re, min.im, max.re, max.im)
- pixel_size: size of one pixel in plane units

It auto-detects available hardware:
- CUDA (NVIDIA GPUs)
- MPS (Apple Silicon)
- CPU fallback via PyTorch (still vectorized)

Usage:
    from compute_gpu import FragmentShader

    shader = FragmentShader()
    if shader.available:
        counts, escaped = shader.evaluate(uniforms, width, height)
"""

import logging

import numpy as np

# Try to import PyTorch
try:
    import torch
    TORCH_AVAILABLE = True
except ImportError:
    TORCH_AVAILABLE = False
    torch = None


logger = logging.getLogger(__name__)


class FragmentShader:
    """
    Vectorized escape-time evaluator driven by shader uniforms.

    Automatically detects and uses the best available device:
    - CUDA for NVIDIA GPUs (float64)
    - MPS for Apple Silicon (float32 only)
    - CPU as fallback (float64)
    """

    def __init__(self, prefer_gpu=True):
        """
        Initialize the evaluator.

        Args:
            prefer_gpu: If False, force CPU even if GPU available
        """
        self.available = TORCH_AVAILABLE
        self.device = None
        self.device_name = "None"
        self.is_gpu = False
        self.is_cuda = False
        self.is_mps = False
        self.dtype = None

        if not TORCH_AVAILABLE:
            return

        if prefer_gpu and torch.cuda.is_available():
            self.device = torch.device("cuda")
            self.device_name = torch.cuda.get_device_name(0)
            self.is_gpu = True
            self.is_cuda = True
            self.dtype = torch.float64
        elif prefer_gpu and hasattr(torch.backends, 'mps') and torch.backends.mps.is_available():
            self.device = torch.device("mps")
            self.device_name = "Apple Silicon GPU (MPS)"
            self.is_gpu = True
            self.is_mps = True
            self.dtype = torch.float32
        else:
            self.device = torch.device("cpu")
            self.device_name = "CPU (PyTorch)"
            self.dtype = torch.float64

    def get_device_info(self):
        """Return a string describing the compute device."""
        if not self.available:
            return "PyTorch not available"
        return f"{self.device_name} [{self.device}]"

    def evaluate(self, uniforms, width, height):
        """
        Run the escape-time loop for every fragment of a width x height target.

        Fragment (x, y) samples its pixel center:
        c = (min.re + (x + 0.5) * pixel_size, min.im + (y + 0.5) * pixel_size)

        Args:
            uniforms: dict with 'max_iterations', 'complex_plane', 'pixel_size'
            width, height: Target dimensions in fragments

        Returns:
            (counts, escaped): flat row-major numpy arrays (int64, bool) of
            length width * height. counts is the iteration at which the
            fragment escaped, or max_iterations if it never did.
        """
        if not self.available:
            raise RuntimeError("PyTorch not available")

        max_iter = int(uniforms['max_iterations'])
        min_re, min_im, _, _ = uniforms['complex_plane']
        pixel_size = float(uniforms['pixel_size'])

        xs = torch.arange(width, device=self.device, dtype=self.dtype)
        ys = torch.arange(height, device=self.device, dtype=self.dtype)
        cr_axis = min_re + (xs + 0.5) * pixel_size
        ci_axis = min_im + (ys + 0.5) * pixel_size

        # Shape: (height, width)
        ci, cr = torch.meshgrid(ci_axis, cr_axis, indexing='ij')

        zr = torch.zeros_like(cr)
        zi = torch.zeros_like(ci)
        counts = torch.zeros(cr.shape, device=self.device, dtype=torch.int64)
        active = torch.ones(cr.shape, device=self.device, dtype=torch.bool)

        # Checking for an empty active mask forces a device sync, so only
        # do it every few iterations.
        check_interval = 16
        for iteration in range(max_iter):
            new_zr = zr * zr - zi * zi + cr
            new_zi = 2 * zr * zi + ci
            zr = torch.where(active, new_zr, zr)
            zi = torch.where(active, new_zi, zi)
            counts += active.to(torch.int64)
            active = active & ((zr * zr + zi * zi) <= 4.0)

            if (iteration + 1) % check_interval == 0 and not bool(active.any()):
                break

        escaped = (zr * zr + zi * zi) > 4.0
        return (counts.reshape(-1).cpu().numpy(),
                escaped.reshape(-1).cpu().numpy())

    def warmup(self):
        """Warm up the device by running a small evaluation."""
        if not self.available:
            return
        uniforms = {
            'max_iterations': 32,
            'complex_plane': (-2.0, -1.2, 0.8, 1.2),
            'pixel_size': 0.1,
        }
        self.evaluate(uniforms, 32, 32)
        if self.device.type == 'cuda':
            torch.cuda.synchronize()


# Global instance for easy access
_fragment_shader = None


def get_fragment_shader(prefer_gpu=True):
    """
    Get the global FragmentShader instance.

    Creates the instance on first call.
    """
    global _fragment_shader
    if _fragment_shader is None:
        _fragment_shader = FragmentShader(prefer_gpu=prefer_gpu)
        logger.info("Fragment shader device: %s", _fragment_shader.get_device_info())
    return _fragment_shader


def should_default_to_gpu():
    """
    Check if the shader engine should be picked by default.

    Returns True only for CUDA GPUs. On MPS and CPU the Numba grid engine
    is typically faster, so it stays the default there.
    """
    if not TORCH_AVAILABLE:
        return False
    return get_fragment_shader().is_cuda
