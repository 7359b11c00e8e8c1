from nibble_tracer.app import main

main()
