"""IPv4 multicast peers, address parsing helpers and read/write counters."""