"""Muon skimming driver class.

Takes care of everything in one centralized place:
- Conditions and propagation engine setup
- Data loading
- Muon selection over each processing pass
- Identity cross-referencing
- Writing output to file
"""

import os

import psutil
import yaml

from .assoc import IdentityResolver
from .build import CandidateBuilder, MuonQA
from .cond import ConditionsError, conditions_factory
from .io import reader_factory, writer_factory
from .prop import propagator_factory
from .select import AcceptancePolicy
from .skim import SKIM_MODES, SkimPipeline
from .utils.logger import logger
from .utils.stopwatch import StopwatchManager
from .version import __version__

__all__ = ["SkimDriver"]


class SkimDriver:
    """Central muon skimming driver.

    Processes global configuration and runs the appropriate modules:
      1. Load one processing pass
      2. Select and build the primary muons of every collision
      3. Resolve the identity cross-references
      4. Write to file

    It takes a configuration dictionary of the form:

    .. code-block:: yaml

        base:
          <Base driver configuration>
        io:
          <Input/output configuration>
        conditions:
          <Conditions service configuration>
        propagator:
          <Propagation engine configuration>
        selection:
          <Acceptance cuts>
        builder:
          <Candidate builder configuration>
        skim:
          <Pipeline mode>
    """

    def __init__(self, cfg):
        """Initializes the class attributes.

        Parameters
        ----------
        cfg : dict
            Global configuration dictionary
        """
        # Initialize the timers and the configuration dictionary
        self.watch = StopwatchManager()
        self.watch.initialize(["iteration", "read", "skim", "resolve"])

        # Process the full configuration dictionary and store it
        base, io, conditions, propagator, selection, builder, skim = (
            self.process_config(**cfg)
        )

        # Initialize the base driver configuration parameters
        self.initialize_base(**base)

        # Initialize the input/output
        self.initialize_io(**io)

        # Initialize the run conditions and the propagation engine
        self.conditions = conditions_factory(conditions)
        self.propagator = propagator_factory(propagator)

        # Initialize the selection chain
        self.policy = AcceptancePolicy(**selection)
        self.initialize_builder(**builder)
        self.initialize_skim(**skim)
        self.resolver = IdentityResolver()

    def process_config(
        self,
        io,
        conditions,
        base=None,
        propagator="quadratic",
        selection=None,
        builder=None,
        skim=None,
    ):
        """Reads the configuration and dumps it to the logger.

        Parameters
        ----------
        io : dict
            I/O configuration dictionary
        conditions : dict
            Conditions service configuration dictionary
        base : dict, optional
            Base driver configuration dictionary
        propagator : Union[str, dict], default 'quadratic'
            Propagation engine configuration
        selection : dict, optional
            Acceptance cuts
        builder : dict, optional
            Candidate builder configuration dictionary
        skim : dict, optional
            Pipeline configuration dictionary

        Returns
        -------
        tuple
            Configuration blocks, with their defaults filled in
        """
        # Set the verbosity of the logger
        base = base or {}
        verbosity = base.get("verbosity", "info")
        logger.setLevel(verbosity.upper())

        # Store the complete configuration
        self.cfg = {
            "base": base,
            "io": io,
            "conditions": conditions,
            "propagator": propagator,
            "selection": selection or {},
            "builder": builder or {},
            "skim": skim or {},
        }

        # Log the package version and the configuration
        logger.info("muskim %s\n", __version__)
        logger.info("Configuration processed at: %s\n", os.getcwd())
        logger.info(yaml.dump(self.cfg, default_flow_style=None, sort_keys=False))

        return (
            base,
            io,
            conditions,
            propagator,
            selection or {},
            builder or {},
            skim or {},
        )

    def initialize_base(
        self, verbosity="info", num_workers=1, iterations=None, log_step=1, parent_path=None
    ):
        """Initialize the base driver parameters.

        Parameters
        ----------
        verbosity : str, default 'info'
            Verbosity level to pass to the `logging` module. Pick one of
            'debug', 'info', 'warning', 'error', 'critical'.
        num_workers : int, default 1
            Number of threads used to process the collisions of a run
        iterations : int, optional
            Number of processing passes to run (-1 or `None` means all)
        log_step : int, default 1
            Number of iterations before the logging is called (1: every step)
        parent_path : str, optional
            Path to the parent directory of the configuration file
        """
        self.verbosity = verbosity
        self.num_workers = num_workers
        self.iterations = iterations
        self.log_step = log_step
        self.parent_path = parent_path

    def initialize_io(self, reader, writer=None):
        """Initializes the input/output scripts.

        Parameters
        ----------
        reader : dict
            Reader configuration dictionary
        writer : dict, optional
            Writer configuration dictionary
        """
        # Initialize the reader
        self.reader = reader_factory(reader)

        # Resolve the number of iterations to run
        if self.iterations is None or self.iterations < 0:
            self.iterations = len(self.reader)
        assert self.iterations <= len(self.reader), (
            f"Requested {self.iterations} iterations, but the reader only "
            f"provides {len(self.reader)} entries."
        )

        # Initialize the writer
        self.writer = None
        if writer is not None:
            self.watch.initialize("write")
            prefix = self.get_prefix(self.reader.file_paths)
            self.writer = writer_factory(writer, prefix=prefix)

    def initialize_builder(self, fill_qa=False, **builder):
        """Initializes the candidate builder.

        Parameters
        ----------
        fill_qa : bool, default False
            If `True`, fill the monitoring histograms
        **builder : dict
            Other arguments of :class:`CandidateBuilder`
        """
        self.qa = MuonQA() if fill_qa else None
        if self.qa is not None and not hasattr(self.writer, "store_qa"):
            logger.warning(
                "Monitoring histograms are filled but the writer (%s) cannot "
                "store them, they will be dropped.",
                type(self.writer).__name__,
            )

        self.builder = CandidateBuilder(
            self.propagator, self.policy, qa=self.qa, **builder
        )

    def initialize_skim(self, mode=None, **flags):
        """Initializes the pipeline.

        Parameters
        ----------
        mode : str, optional
            Name of the pipeline mode, one of `SKIM_MODES`
        **flags : dict
            Explicit pipeline flags, which supersede the ones of the mode
        """
        if mode is not None:
            if mode not in SKIM_MODES:
                raise ValueError(
                    f"Skim mode not recognized: {mode}. Must be one of "
                    f"{list(SKIM_MODES.keys())}."
                )
            flags = {**SKIM_MODES[mode], **flags}

        self.pipeline = SkimPipeline(
            self.builder, self.conditions, num_workers=self.num_workers, **flags
        )

    @staticmethod
    def get_prefix(file_paths):
        """Builds an output prefix from the list of input files.

        Parameters
        ----------
        file_paths : List[str]
            List of input file paths

        Returns
        -------
        str
            Shared prefix of the input file names
        """
        file_names = [os.path.splitext(os.path.basename(f))[0] for f in file_paths]
        prefix = os.path.commonprefix(file_names) or "muskim"
        if len(file_names) > 1:
            prefix = f"{prefix}--{len(file_names)}"

        return prefix

    def __len__(self):
        """Returns the number of processing passes to run.

        Returns
        -------
        int
            Number of iterations
        """
        return self.iterations

    def __iter__(self):
        """Resets the counter and returns itself."""
        self.counter = 0

        return self

    def __next__(self):
        """Processes the next processing pass."""
        if self.counter < len(self):
            result = self.process(self.counter)
            self.counter += 1
            if self.counter == len(self):
                self.store_qa()

            return result

        raise StopIteration

    def run(self):
        """Loop over the requested number of iterations, process them."""
        for iteration in range(self.iterations):
            try:
                result = self.process(iteration)

            except ConditionsError:
                logger.error(
                    "Aborting: could not load the run conditions of entry %d.",
                    iteration,
                )
                raise

            self.log(result, iteration)

        self.store_qa()

        # Dump the average execution times
        times = self.watch.times_mean()
        msg = ", ".join(f"{k}: {v.wall:0.3f} s" for k, v in times.items())
        logger.info("Average wall times: %s", msg)

    def store_qa(self):
        """Stores the monitoring histograms, if they are filled and the
        writer supports it.
        """
        if self.qa is not None and hasattr(self.writer, "store_qa"):
            self.writer.store_qa(self.qa.to_dict())

    def process(self, entry):
        """Process one processing pass.

        Parameters
        ----------
        entry : int
            Entry number

        Returns
        -------
        dict
            Products of the processing pass
        """
        self.watch.start("iteration")

        # Load the tables
        self.watch.start("read")
        frame = self.reader.get(entry)
        self.watch.stop("read")

        # Build the muon table
        self.watch.start("skim")
        table = self.pipeline.run(frame)
        self.watch.stop("skim")

        # Resolve the identity cross-references
        self.watch.start("resolve")
        ambiguous_ids, same_mft_ids = self.resolver.resolve(table)
        self.watch.stop("resolve")

        muons, covs = table.to_arrays()
        result = {
            "index": entry,
            "name": self.reader.get_entry_name(entry),
            "num_collisions": frame.num_collisions,
            "num_fwd_tracks": frame.num_fwd_tracks,
            "num_muons": len(table),
            "table": table,
            "muons": muons,
            "muons_cov": covs,
            "ambiguous_muon_self_ids": ambiguous_ids,
            "global_muon_self_ids": same_mft_ids,
        }

        # Store the output
        if self.writer is not None:
            self.watch.start("write")
            self.writer(result, self.cfg)
            self.watch.stop("write")

        self.watch.stop("iteration")

        return result

    def log(self, result, iteration):
        """Log the basics of one processing pass to stdout.

        Parameters
        ----------
        result : dict
            Products of the processing pass
        iteration : int
            Iteration counter
        """
        if ((iteration + 1) % self.log_step) != 0:
            return

        mem = psutil.Process().memory_info().rss / 1.0e9
        mem_perc = psutil.virtual_memory().percent
        t_iter = self.watch.time("iteration").wall
        logger.info(
            "Entry %d (%s): %d muon(s) from %d collision(s) and %d track(s) | "
            "%0.2f s | %0.2f GB (%0.2f %%)",
            result["index"],
            result["name"],
            result["num_muons"],
            result["num_collisions"],
            result["num_fwd_tracks"],
            t_iter,
            mem,
            mem_perc,
        )
