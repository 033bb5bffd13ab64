"""witnessledger core: signing, receipt model, store and witnessing."""
