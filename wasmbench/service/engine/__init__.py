"""Engine adapters: one module per WebAssembly backend behind the WasmEngine interface."""
