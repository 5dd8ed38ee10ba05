"""One short rod per built-in profile, laid out along x."""

from threadforge.modeling import ThreadParameters, build_thread, get_profile


def build():
    profiles = [
        get_profile("sine"),
        get_profile("double_sine"),
        get_profile("triangular"),
        get_profile("iso"),
        get_profile("circle", r=4.0, dia=6.0),
    ]
    rods = []
    for index, profile in enumerate(profiles):
        params = ThreadParameters(dia=10.0, length=6.0, pitch=1.5, profile=profile, fn=64, fnstep=4)
        rods.append(build_thread(params).to_mesh().translate((index * 14.0, 0.0, 0.0)))
    return rods
