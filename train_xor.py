#!/usr/bin/env python3
"""
Train a Network on XOR

This script trains a small sigmoid network on the XOR truth table, the
classic problem a single-layer perceptron cannot solve.

Usage:
    python train_xor.py
    python train_xor.py --layers 2 4 1 --epochs 10000 --learning-rate 0.5
    python train_xor.py --save xor.npz
    python train_xor.py --load xor.npz --epochs 0

The script will:
1. Create a network (or load a saved one)
2. Train it one sample at a time for the requested number of epochs
3. Print the prediction for each XOR input
4. Optionally save the trained network
"""

import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from matrixnn.network import Network
from matrixnn.utils import (
    TrainingConfig,
    load_network,
    mean_squared_error,
    save_network,
    train_network,
    xor_dataset,
)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Train a matrix neural network on XOR")
    parser.add_argument(
        "--layers",
        type=int,
        nargs="+",
        default=[2, 4, 1],
        help="Nodes per layer, input first (input must be 2, output 1)",
    )
    parser.add_argument("--epochs", type=int, default=5000)
    parser.add_argument("--learning-rate", type=float, default=0.5)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log-every", type=int, default=1000)
    parser.add_argument("--save", default=None, help="Path to save the trained network")
    parser.add_argument("--load", default=None, help="Path of a saved network to start from")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv=None):
    """Main training function."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("=" * 60)
    print("XOR Training")
    print("=" * 60)
    print()

    dataset = xor_dataset()

    # ==================== Model ====================
    if args.load:
        network = load_network(args.load)
        print(f"Loaded network from {args.load}")
    else:
        network = Network(args.layers, seed=args.seed)
        print("Created network")

    print(f"Layers: {list(network.layer_sizes)}")
    print(f"Parameters: {network.num_parameters}")
    print(f"Initial MSE: {mean_squared_error(network, dataset):.6f}")
    print()

    # ==================== Training ====================
    if args.epochs > 0:
        config = TrainingConfig(
            epochs=args.epochs,
            learning_rate=args.learning_rate,
            seed=args.seed,
            log_every=args.log_every,
        )
        print(f"Training for {config.epochs} epochs (learning rate {config.learning_rate})...")
        train_network(network, dataset, config)
        print()

    # ==================== Results ====================
    print(f"Final MSE: {mean_squared_error(network, dataset):.6f}")
    for inputs, targets in dataset:
        prediction = network.predict(inputs)[0]
        print(f"  {inputs} -> {prediction:.4f} (target {targets[0]:.0f})")

    if args.save:
        save_network(network, args.save)
        print(f"\nSaved network to {args.save}")

    print("\nDone!")


if __name__ == "__main__":
    main()
