"""Example models and command-line programs: simple, discrete offline filtering and continuous online planning."""