"""
Audit response synthesis and validation engine.

This package turns untrusted free-text model output into a stable,
policy-compliant, deduplicated and cache-consistent audit result.

The generative model only proposes findings. Evidence grounding,
constraint checking, bounded regeneration, scoring and caching are all
deterministic and live here.
"""
