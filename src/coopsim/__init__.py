"""
coopsim: spatial producer/cheater competition on a periodic lattice.

Two phenotypes compete for a diffusible, decaying resource that only
producers synthesize and every cell consumes.

Core concepts:
- A single point-source response is solved once (sparse decay-diffusion)
- The resource field is the superposition of that response over producers
- Growth rate = baseline + benefit·concentration - own production cost
- Frontier cells replace (or shove past) competitors in Gillespie time
- A run ends on fixation, on a halt count, or when the step budget runs out
"""

__version__ = "0.1.0"
