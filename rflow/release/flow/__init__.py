"""Use-case sequencing: phase executors, backflow, train initiation."""
