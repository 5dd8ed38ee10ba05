"""M6 threaded rod, 10 mm long, with a quarter-turn lead-in taper."""

from threadforge.modeling import make_threaded_rod, thread_parameters_for


def build():
    params = thread_parameters_for(6.0, 10.0, taper_arc=0.25, fn=48, fnstep=4)
    return make_threaded_rod(params)
