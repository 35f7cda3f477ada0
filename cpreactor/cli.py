import argparse
import logging
from typing import List, Optional

import numpy as np
import pandas as pd

from .capability import ReactorAdapter
from .config import MolecularWeightPolicy, SpeciesFormulation, settings
from .errors import ReactorError
from .mechanism import hydrogen_air_mechanism
from .mixture import InitialComposition
from .reactors import ReactorModel
from .solver import integrate_capability

STOICHIOMETRIC_H2_AIR = "H2=0.0285,O2=0.2264,N2=0.7451"


def _add_state_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--T0", type=float, default=settings.initial_temperature)
    p.add_argument("--P0", type=float, default=settings.initial_pressure)
    p.add_argument("--Y", type=str, default=STOICHIOMETRIC_H2_AIR, help="Mass fractions as name=value pairs, e.g. 'H2=0.03,O2=0.22,N2=0.75'")
    p.add_argument("--policy", choices=[m.value for m in MolecularWeightPolicy], default=settings.molecular_weight_policy.value)
    p.add_argument("--formulation", choices=[f.value for f in SpeciesFormulation], default=settings.species_formulation.value)
    p.add_argument("--renormalize", action="store_true", default=settings.renormalize)


def _build_reactor(args: argparse.Namespace) -> ReactorModel:
    run_settings = settings.model_copy(
        update={
            "molecular_weight_policy": MolecularWeightPolicy(args.policy),
            "species_formulation": SpeciesFormulation(args.formulation),
            "renormalize": args.renormalize,
        }
    )
    mech = hydrogen_air_mechanism(gas_constant=run_settings.gas_constant)
    composition = InitialComposition.parse(args.Y, tolerance=run_settings.composition_tolerance)
    return ReactorModel(
        mech,
        len(mech.species_names),
        temperature=args.T0,
        pressure=args.P0,
        composition=composition,
        settings=run_settings,
    )


def run_cli(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="cpreactor - constant-pressure adiabatic 0-D reactor CLI")
    parser.add_argument("--log-level", type=str, default="INFO")
    sub = parser.add_subparsers(dest="cmd", required=True)

    # Integrate
    p_run = sub.add_parser("run", help="Integrate the bundled H2/air mechanism")
    _add_state_args(p_run)
    p_run.add_argument("--tend", type=float, default=None, help="End time [s]; default uses the geometric output schedule")
    p_run.add_argument("--points", type=int, default=100)
    p_run.add_argument("--csv", type=str, default="cpreactor.csv")
    p_run.add_argument("--stats-csv", type=str, default="cpreactor_stats.csv")

    # Inspect
    p_inspect = sub.add_parser("inspect", help="Print the initial reactor state")
    _add_state_args(p_inspect)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        reactor = _build_reactor(args)
    except (ReactorError, ValueError) as exc:
        raise SystemExit(f"Invalid reactor input: {exc}")

    if args.cmd == "inspect":
        print(reactor.summary().to_string())
        print()
        print(reactor.species_frame().to_string())
        return

    if args.cmd == "run":
        t_eval = None
        if args.tend is not None:
            t_eval = np.linspace(0.0, args.tend, max(args.points, 2))
        try:
            res = integrate_capability(ReactorAdapter(reactor), t_eval=t_eval, settings=reactor.settings)
        except ReactorError as exc:
            raise SystemExit(f"Integration aborted: {exc}")
        res.to_frame(reactor.species_names).to_csv(args.csv, index=False)
        res.stats_frame().to_csv(args.stats_csv, index=False)
        print(f"Wrote {len(res.t)} rows to {args.csv}. Final T = {res.y[0][-1]:.2f} K")
        return


if __name__ == "__main__":
    run_cli()
