#!/usr/bin/env python3
"""
Run script for the axial turbine design optimization

Usage:
    $ python -m axial_turbine.run                      # bundled ex2_R125 case
    $ python -m axial_turbine.run my_case.yml --csv out.csv
    $ python -m axial_turbine.run ex2_R125 --evaluate-only

This script:
  1. Loads the case file (fixed parameters, bounds, constraints, settings)
  2. Evaluates the initial guess
  3. Solves the optimization problem
  4. Prints the optimal design and optionally saves the cascade table to CSV
"""

import argparse
import sys

from axial_turbine.config import load_case
from axial_turbine.components.turbine import evaluate
from axial_turbine.optimization.driver import solve


def _print_result(title, result):
    print("\n" + "=" * 70)
    print(f" {title}")
    print("=" * 70)
    if result.feasible:
        print(result.summary())
    else:
        print(f"✗ Infeasible at {result.component}: {result.reason}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Axial turbine mean-line design optimization")
    parser.add_argument("case", nargs="?", default="ex2_R125",
                        help="YAML case file or name of a bundled case")
    parser.add_argument("--csv", help="Write the cascade table of the final design to CSV")
    parser.add_argument("--evaluate-only", action="store_true",
                        help="Evaluate the initial guess without optimizing")
    parser.add_argument("--quiet", action="store_true", help="Do not print the iteration history")
    args = parser.parse_args(argv)

    problem = load_case(args.case)
    params = problem.params
    print(f"Fluid: {params.fluid_name}, stages: {params.n_stages}, "
          f"loss system: {params.loss_system.value}, coefficient: {params.loss_coefficient.value}, "
          f"diffuser: {params.diffuser_model.value}")
    print(f"Mass flow: {params.mass_flow:.4f} kg/s, isentropic power: {params.isentropic_power / 1e3:.2f} kW")

    initial = evaluate(problem.x0, params)
    _print_result("INITIAL GUESS", initial)

    if args.evaluate_only:
        final = initial
    else:
        print("\nSolving optimization problem...")
        opt = solve(problem, verbose=not args.quiet)
        print(f"\nExit status: {opt.exit_status.value} ({opt.diagnostics['message']})")
        print(f"Iterations: {opt.diagnostics['iterations']}, "
              f"evaluations: {opt.diagnostics['evaluations']}, "
              f"constraint violation: {opt.diagnostics['constraint_violation']:.3e}")
        final = opt.solution
        _print_result("OPTIMAL SOLUTION", final)

    if args.csv and final.feasible:
        final.to_dataframe().to_csv(args.csv, index=False)
        print(f"\n✓ Results saved to: {args.csv}")

    return 0 if final.feasible else 1


if __name__ == "__main__":
    sys.exit(main())
