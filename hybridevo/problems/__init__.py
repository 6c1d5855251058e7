from hybridevo.problems.benchmarks import QuadraticBackend, RastriginBackend
