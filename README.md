# toykernel

A collection of small operating-system building blocks written in plain
Python. Each module models one piece of a toy kernel so it can be read,
run and tested on an ordinary machine. Nothing here needs root or special
hardware, and there are no third-party dependencies.

## Installation

```
pip install .
```

Add the `test` extra to get pytest:

```
pip install ".[test]"
```

## What is inside

| Module | What it does |
| --- | --- |
| `toykernel.memory` | `MemoryManager`: a best-fit allocator over a fixed byte pool with splitting, merging, reallocation, copying and leak reporting; failures raise `AllocationError` |
| `toykernel.thread_pool` | `ThreadPool`: fixed worker threads fed from a FIFO queue; `submit` returns a `concurrent.futures.Future` that carries the result or the task's exception |
| `toykernel.scheduler` | `Scheduler` and `TaskInfo`: tasks that run in threads (at most 64), and a priority manager that nudges running tasks' priorities within 1..99 |
| `toykernel.process_table` | `ProcessTable` and `ProcessInfo`: a thread-safe in-memory table of process records |
| `toykernel.chardev` | `CharDevice`, `DeviceHandle` and `IoctlCommand`: a simulated character device with a resizable buffer (1 to 40960 bytes) |
| `toykernel.interrupts` | `IdtEntry`, `make_idt_entry`, `unpack_idt_entry`, `build_idt`, `idt_pointer` and `ProcessorGroup`: packing of x86-64 IDT entries and simulated processors |
| `toykernel.fileops` | File and directory helpers: read, write, copy, move, rename, symlinks, sizes, modification times, file types, running a program |
| `toykernel.startup` | `read_elf_header`, `iter_load_segments`, `make_boot_params` and `load_kernel` for 32-bit ELF images |
| `toykernel.data_processor` | `DataProcessor`: reads `key value` lines, transforms values and writes a report, configured by TOML |
| `toykernel.console` | `CommandParser`, `CommandExecutor`, `ErrorHandler` and `Console`: a line-oriented command shell |
| `toykernel.timer` | `Timer`: measures and prints elapsed time, also usable as a context manager |
| `toykernel.system` | `System`: a system record with an id and a name of at most 19 characters |

## Library use

Allocating from a memory pool (addresses are byte offsets into the pool):

```python
from toykernel.memory import MemoryManager

manager = MemoryManager(1024)
address = manager.allocate(16)
address = manager.reallocate(address, 32)
manager.deallocate(address)
print(manager.format_state())
print(manager.leaks())
```

Running work on a thread pool:

```python
from toykernel.thread_pool import ThreadPool

with ThreadPool(4) as pool:
    future = pool.submit(pow, 2, 10)
    pool.wait_completion()
    print(future.result())
```

Using the simulated character device:

```python
from toykernel.chardev import CharDevice, IoctlCommand

device = CharDevice()
with device.open() as handle:
    handle.write(b"hello")
device.ioctl(IoctlCommand.SET_BUFFER_SIZE, 8192)
print(device.ioctl(IoctlCommand.GET_BUFFER_SIZE))
device.clear()
```

Keeping a process table:

```python
from toykernel.process_table import ProcessTable

table = ProcessTable()
pid = table.add("worker", ["--fast"])
table.update(pid, priority=5)
table.suspend(pid)
print(table.get(pid).priority, table.is_running(pid))
```

## Commands

```
toykernel-timer                        # time an empty block of work
toykernel-system --id 1 --name "My System"
toykernel-scheduler --duration 20 --interval 3
toykernel-process-data                 # process data as described by config.toml
toykernel-process-data -c other.toml
toykernel-interrupts --processors 4    # run simulated processors until SIGINT or SIGTERM
toykernel-startup KERNEL               # show entry point, load address and load segments
toykernel-console                      # read commands from standard input
```

`toykernel-console` knows two commands: `hello` prints a greeting and
`add X Y` prints the sum of two integers. Errors are reported on standard
error and the console carries on until the end of input.

### Data processor configuration

`toykernel-process-data` reads a TOML file with four keys:

```toml
input_file = "data/input.txt"
output_file = "out/result.txt"
reserve_size = 100
use_parallel_processing = false
```

The input holds one `key value` pair per line; blank lines and lines that
start with `#` are skipped, and lines longer than 1024 characters are an
error. When a key repeats, its first value is kept. Values above 10 are
doubled, the rest are halved (truncating toward zero), and each
`key: value` pair is written to the output file, whose parent directories
are created. The exit status is 1 for a configuration error, 2 for a file
error, 3 for a data error and 4 for anything else.

## What this package does not do

- It has no system-call layer: there is no dispatch table of numbered
  calls over file descriptors. `toykernel.fileops` offers plain helper
  functions instead.
- It does not start, signal or supervise real operating-system processes.
  `ProcessTable` only keeps records; the only process started is the one
  `fileops.execute` runs and waits for.
- `toykernel.startup` parses images and builds boot parameters; it does
  not map segments into memory or jump to the entry point.
- `toykernel.interrupts` encodes descriptor tables as bytes; it does not
  load them or handle real interrupts.

## Running the tests

```
pytest
```