"""M8 x 16 hex bolt with rounded head edges, shown beside a matching nut."""

from threadforge.modeling import make_hex_bolt, make_hex_nut


def build():
    bolt = make_hex_bolt(8.0, 16.0, rounding=0.4, fn=48, fnstep=4)
    nut = make_hex_nut(8.0, fn=48, fnstep=4).translate((20.0, 0.0, 0.0))
    return [bolt, nut]
