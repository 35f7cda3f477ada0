"""cpreactor: adiabatic constant-pressure 0-D reactor modeling.

This package provides:
- Reactor: ideal-gas, constant-pressure, adiabatic mixture state and ODE right-hand side
- Capability: the narrow interface an external time stepper drives
- Mechanism: NASA-7 thermo, Arrhenius / third-body / fall-off kinetics
- Solver: SciPy solve_ivp driver for stiff ODEs
- Analytics: mixture molecular weight policy comparison, ignition delay
"""

__version__ = "0.1.0"
