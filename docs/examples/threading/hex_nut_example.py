"""M8 hex nut with 0.2 mm clearance on the internal thread."""

from threadforge.modeling import make_hex_nut


def build():
    return make_hex_nut(8.0, clearance=0.2, fn=48, fnstep=4)
