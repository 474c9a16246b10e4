"""Link Bounded Context.

Responsible for point-to-point radio link analysis:
- Value Objects: Endpoint, LinkSpec, FresnelPoint, ClearanceResult, LinkAnalysis
- Services: Fresnel geometry, clearance evaluation, envelope polygon
"""
