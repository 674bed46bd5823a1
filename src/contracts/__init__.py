"""View contracts: declarative specs for how an agent's output is presented.

A contract names main-content blocks and sections, each pointing into
the output with a path expression. Pure definition, no rendering code.
Definitions live as JSON/YAML files and are served by ContractRegistry.
"""
