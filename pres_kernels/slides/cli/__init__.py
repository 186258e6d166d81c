"""
Slides CLI — slidesctl command-line interface.

Usage:
    python -m pres_kernels.slides.cli.slidesctl compile <template> < doc.json > slides.html
    python -m pres_kernels.slides.cli.slidesctl theme < theme.json > theme.css
    python -m pres_kernels.slides.cli.slidesctl render <doc.json> <template>
"""

from pres_kernels.slides.cli.slidesctl import main
